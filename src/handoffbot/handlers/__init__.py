"""Telegram update handlers for HandoffBot."""
