from __future__ import annotations

# The server accepts 512 bytes per line including "\r\n". Outgoing PRIVMSGs
# keep to 463 bytes minus the "PRIVMSG " command and the target so the
# relayed line (with our prefix prepended) still fits for other clients.
IRC_SEND_BUDGET = 463
PRIVMSG_OVERHEAD = 8
# "\x01ACTION " plus the closing "\x01".
CTCP_ACTION_OVERHEAD = 9

CTCP_DELIMITER = "\x01"
CTCP_ACTION_PREFIX = f"{CTCP_DELIMITER}ACTION "

# Recipient used in mock GitHub mode to replay comments over IRC.
MOCK_GITHUB_COMMENTS_TARGET = "github-comments"

DEFAULT_QUIT_WAIT_SECONDS = 0.5
