"""
Test package root.

Only this directory carries an __init__.py, so `tests.helpers` can be imported from any test
module. Test subdirectories are namespace packages and need no __init__.py of their own.
"""
