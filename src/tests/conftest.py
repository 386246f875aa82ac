"""Test configuration for pytest.

Put the repository root on sys.path so tests can import the `src` package
and the `run` entry point without needing PYTHONPATH set externally.
"""
import os
import sys

# project root is two directories above this file (src/tests -> src -> root)
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), '..', '..'))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)
