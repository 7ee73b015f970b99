"""HandoffBot - Telegram support bot with live human handoff.

Routes messages between end users and support admins through one-to-one
dialogs, with FAQ answers, an intake questionnaire, and an admin file relay
around that core.

Package entry point. Exports the version string only; functional modules
are imported lazily by main.py.
"""

__version__ = "0.1.0"
