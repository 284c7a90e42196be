# Models package
from .location import Location
from .user import User
from .ticket import Ticket
from .asset import Asset
from .network_device import NetworkDevice

__all__ = ['Location', 'User', 'Ticket', 'Asset', 'NetworkDevice']
