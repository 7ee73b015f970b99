"""Root conftest — pins env vars BEFORE any handoffbot module is imported.

Keeps tests from reading a real ~/.handoffbot or a real bot token.
"""

import os
import tempfile

# Force-set (not setdefault) to prevent real env vars from leaking into tests
os.environ["BOT_API_KEY"] = "test:0000000000:AAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAA"
os.environ["HANDOFFBOT_DIR"] = tempfile.mkdtemp(prefix="handoffbot-test-")
