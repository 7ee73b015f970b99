"""Callback data constants for Telegram inline keyboards.

Defines all CB_* values used for routing callback queries in the bot.

Constants:
  - CB_CLAIM / CB_CLOSE: support request buttons (carry the user id)
  - CB_START_CONV / CB_CANCEL: "start a support dialog?" prompt
  - CB_FAQ: FAQ answer buttons (answer-<n>)
  - CB_ADMIN_*: admin panel
"""

import re

# Support request (posted to the support chat)
CB_CLAIM = "answer_"  # answer_<user_id>
CB_CLOSE = "close_"  # close_<user_id>

# Support dialog prompt
CB_START_CONV = "start-conv"
CB_CANCEL = "cancel"

# FAQ
CB_FAQ = "answer-"  # answer-<n>

# Admin panel
CB_ADMIN_SENDFILE = "admin_sendfile"
CB_ADMIN_CANCEL = "admin_cancel"

CLAIM_RE = re.compile(r"^answer_(\d+)$")
CLOSE_RE = re.compile(r"^close_(\d+)$")
FAQ_RE = re.compile(r"^answer-(\d+)$")
