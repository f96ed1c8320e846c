import pytest
import sys
import os

# Add the project root to the Python path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

# Import fixtures so they're available to all tests
from tests.fixtures.database import (
    fresh_settings,
    test_engine,
    test_session_maker,
    test_session,
    file_session_maker,
    make_profile,
)

# Configure pytest
def pytest_configure(config):
    config.addinivalue_line(
        "markers", "discovery: tests related to the candidate pool and distance filter"
    )
    config.addinivalue_line(
        "markers", "swipes: tests related to likes, passes, quota and matching"
    )
    config.addinivalue_line(
        "markers", "friends: tests related to friend requests, blocks and the likes inbox"
    )
