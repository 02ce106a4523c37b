"""
AccountSwap: local account-state switching for the Antigravity desktop app.

Logs the app out, backs up the signed-in account, and restores saved
accounts by editing the app's own key/value state store.
"""

import os

__version__ = "0.1.0"
__author__ = "accountswap contributors"

ACCOUNTSWAP_HOME = os.environ.get("ACCOUNTSWAP_HOME", "~/.accountswap")
