"""Application constants - user-facing strings and rule names centralized."""

# Request actions accepted by the chat action endpoint
ACTION_SEND_REQUEST = "sendrequest"
ACTION_CONFIRM_FINISH = "confirmfinish"
ACTION_SHARE_CONVERSATION = "shareconversation"
ACTION_TOGGLE_PUBLIC = "togglepublic"
ACTION_REVOKE_SHARE = "revokeshare"
ACTION_GET_COMMENT = "getcomment"
ACTION_SAVE_COMMENT = "savecomment"

# Completion rules
RULE_COMPLETION_VIEW = "completionview"
RULE_COMPLETION_ATTEMPTS = "completionattempts"
RULE_COMPLETION_SHARE = "completionshare"
COMPLETION_SORT_ORDER = [RULE_COMPLETION_VIEW, RULE_COMPLETION_ATTEMPTS, RULE_COMPLETION_SHARE]

# Enrolment roles
ROLE_STUDENT = "student"
ROLE_TEACHER = "teacher"

# Transcript delivery modes
TRANSCRIPT_PREVIEW = "preview"
TRANSCRIPT_DOWNLOAD = "download"
TRANSCRIPT_FILENAME = "conversation.pdf"
BOT_LABEL = "Bot"

# User-facing messages
MSG_NO_ATTEMPTS_REMAINING = "You have no attempts remaining for this chatbot."
MSG_ALREADY_SHARED = "You have already shared a dialog. Please wait for the teacher to revoke the current share."
MSG_NO_SUBMISSION = "No submission"
MSG_NO_ACCESS = "This resource is not available to you."
MSG_INVALID_ACTION = "invalid action"
MSG_INVALID_SESSKEY = "invalid sesskey"
MSG_EMPTY_PROMPT = "Message text must not be empty"
MSG_SUBMITTED_BY = "Submitted by: "
MSG_COMPLETION_ATTEMPTS = "Finish {attempts} attempt(s)"
MSG_COMPLETION_SHARE = "Share one attempt"
