"""
inkshare/utils/constants.py

Purpose: Centralized static content

- All user-facing messages
- Command names and limits

(Prevents hardcoding across the codebase)
"""

# ============================================================
# WELCOME & HELP
# ============================================================

WELCOME_MESSAGE = "Welcome!"

HELP_LINES = (
    "/register [CODE] : register your reMarkable. You can generate the code at https://my.remarkable.com/connect/remarkable",
    "/search [TERM] : Search a document across your files",
    "/share [FILE ID] [USERNAME] : Send one of your files to the following telegram user",
    "Send a PDF file to upload it",
)

UNKNOWN_COMMAND_MESSAGE = "I don't know this command. Try /help"

# ============================================================
# GATE
# ============================================================

RATE_LIMITED_MESSAGE = "Rate limit exceeded"
GENERIC_FAILURE_MESSAGE = "An error has occurred. The admin has been notified!"

# ============================================================
# COMMANDS
# ============================================================

WORKING_MESSAGE = "Working on it..."

REGISTER_USAGE = "You need to specify the code to pair your reMarkable as a parameter"
REGISTER_DONE_MESSAGE = "Done!"

SEARCH_USAGE = "Usage: /search [TERM]"
SEARCH_EMPTY_MESSAGE = "Found nothing"
SEARCH_MAX_RESULTS = 5

SHARE_USAGE = "You need to specify the ID of the document, followed by the handle of the user"
SHARE_SENT_MESSAGE = "The file has been sent to @{handle}"
SHARE_NOTIFICATION = "@{sender} has sent you a document. /accept or /refuse"

ACCEPT_EMPTY_MESSAGE = "No document in queue"
ACCEPT_DONE_MESSAGE = "File uploaded to your reMarkable with the ID `{document_id}`"

REFUSE_DONE_MESSAGE = "The file has been rejected"

# ============================================================
# UPLOADS
# ============================================================

DEFAULT_UPLOAD_NAME = "File uploaded"
UPLOAD_DONE_MESSAGE = "Document uploaded! ID: `{document_id}`"
