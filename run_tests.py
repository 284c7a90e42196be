#!/usr/bin/env python3
import sys
import os

import pytest

def run_tests():
    """Run all test cases"""
    # Add project root to path
    root = os.path.abspath(os.path.dirname(__file__))
    sys.path.insert(0, root)

    return pytest.main([os.path.join(root, 'tests'), '-v'] + sys.argv[1:]) == 0

if __name__ == '__main__':
    success = run_tests()
    sys.exit(0 if success else 1)
