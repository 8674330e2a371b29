from .fake_aws import FakeSession, make_instance
from .fake_launcher import FakeLauncher

__all__ = ["FakeLauncher", "FakeSession", "make_instance"]
