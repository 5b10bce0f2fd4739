"""
Root conftest -- adds the project root and dashboard/ to sys.path so tests
can import both the quantgrid package and the dashboard app module.
"""
import sys
import os

_root = os.path.dirname(__file__)
sys.path.insert(0, os.path.join(_root, "dashboard"))
sys.path.insert(0, _root)
