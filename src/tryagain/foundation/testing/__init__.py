"""Testing utilities: scripted operations, collecting sinks and virtual time."""

from .fakes import HANG, CollectingSink, FakeClock, FakeSleep, ScriptedOperation, wait_until

__all__ = ["HANG", "CollectingSink", "FakeClock", "FakeSleep", "ScriptedOperation", "wait_until"]
