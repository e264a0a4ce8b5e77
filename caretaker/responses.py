"""User-facing response strings for Caretaker.

All textual replies that Caretaker sends over WhatsApp are defined here.
Parameterized strings use .format() style templates. WhatsApp renders
*single asterisks* as bold.
"""


class CaretakerResponse:
    """All user-facing response strings, organized by feature area."""

    # ── General ──────────────────────────────────────────────────────────────

    GENERIC_ERROR = "Sorry, there was an error processing your message. Please try again."
    UNKNOWN_COMMAND = "Unknown command: {command}. Type /help for available commands."
    NO_ACCOUNT = (
        "No account found for your phone number. "
        "Contact your supervisor if you should have access to assigned tasks."
    )
    LOCATION_RECEIVED = (
        "📍 Thanks, I received your location. To report an issue, describe it in a "
        "text message (for example: 'Broken window in Room 12')."
    )
    MEDIA_WITHOUT_TEXT = (
        "I received your {kind}. Please add a short text description so I can log it, "
        "or type /help to see what I can do."
    )
    UNSUPPORTED_MESSAGE = "Sorry, I can only read text messages right now. Type /help for commands."
    EMPTY_MESSAGE = "I received an empty message. Describe a problem to report it, or type /help."

    # ── Help ─────────────────────────────────────────────────────────────────

    HELP = (
        "🔧 *Caretaker Help*\n\n"
        "*📋 Task Commands:*\n"
        "• /assigned - View your assigned tasks\n"
        "• /update - Update task progress\n"
        "• /complete - Mark tasks complete\n"
        "• /status - Check your reports\n\n"
        "*📝 Quick Updates:*\n"
        "• `/update 2 your progress` - Update task #2\n"
        "• `/complete 3 task done` - Complete task #3\n"
        "• `/update #SUBNG0 progress` - Update by reference\n\n"
        "*🎯 Quick Actions:*\n"
        "• Send a task reference (e.g. #SUBNG0) to see its details\n"
        "• Describe a problem in plain text to report it\n\n"
        "*📞 Need Help?*\n"
        "Contact your supervisor or school office directly."
    )

    # ── Task lists ───────────────────────────────────────────────────────────

    NO_ASSIGNED_TASKS = (
        "📋 *No Assigned Tasks*\n\n"
        "You currently have no open tasks assigned to you.\n\n"
        "Great job keeping up with your work! 👍"
    )
    ASSIGNED_HEADER = "📋 *Your Assigned Tasks*\n\nHi {name}, here are your current tasks:\n"
    ASSIGNED_ITEM = (
        "{index}. {icon} *{reference}*\n"
        "   {subcategory}\n"
        "   📍 {location}\n"
        "   👤 Reported by: {reporter}\n"
        "   📅 {date}\n"
    )
    ASSIGNED_FOOTER = (
        "💡 *Quick Actions:*\n"
        "• Reply `/update 2 your progress` to update task #2\n"
        "• Reply `/complete 3 task done` to complete task #3\n"
        "• Reply `/help` for more commands"
    )
    SELECT_HEADER_UPDATE = (
        "📝 *Update Task Progress*\n\nSelect a task to update by replying with the number:\n"
    )
    SELECT_HEADER_COMPLETE = (
        "🎯 *Complete a Task*\n\nSelect the task you finished by replying with the number:\n"
    )
    SELECT_ITEM = "{index}. {icon} *{reference}*\n   {subcategory}\n   📍 {location}\n"
    SELECT_FOOTER = "💡 *Instructions:*\n• Reply with a number (1-{count})\n• Or type 'cancel' to exit"

    # ── Status ───────────────────────────────────────────────────────────────

    NO_REPORTS = (
        "📊 *Your Reports*\n\nYou haven't reported anything yet.\n\n"
        "Describe a problem in a message to create a report."
    )
    STATUS_HEADER = "📊 *Your Recent Reports*\n"
    STATUS_ITEM = "{icon} *{reference}* - {subcategory}\n   📍 {location} • {status}\n"

    # ── Sessions ─────────────────────────────────────────────────────────────

    SESSION_CANCELLED = "Update cancelled. Type /update to try again."
    SESSION_EXPIRED = "Session expired. Please start over with /update."
    SELECT_INVALID = "Please reply with a valid number (1-{count}) or 'cancel'."
    PROVIDE_UPDATE_PROMPT = (
        "📝 *Update Progress: {reference}*\n\n"
        "🏷️ *Task:* {subcategory}\n"
        "📍 *Location:* {location}\n"
        "📅 *Status:* {status}\n\n"
        "💬 *Provide your update:*\n"
        "• Describe what you've done\n"
        "• Include any issues or progress\n\n"
        "✅ *Options:*\n"
        "• Type your update message\n"
        "• Send 'complete' if task is finished\n"
        "• Send 'cancel' to exit"
    )
    CONFIRM_COMPLETION_PROMPT = (
        "✅ *Mark as Complete: {reference}*\n\n"
        "🏷️ *Task:* {subcategory}\n"
        "📍 *Location:* {location}\n\n"
        "⚠️ *Confirm Completion:*\n"
        "• Reply 'yes' to mark as complete\n"
        "• Reply 'no' to continue with regular update\n"
        "• Optional: add completion notes after 'yes'"
    )
    CONFIRM_INVALID = (
        "Please reply 'yes' to confirm completion, 'no' to continue with regular update, "
        "or 'cancel' to exit."
    )
    CONTINUE_UPDATE = (
        "📝 *Continue with regular update for {reference}*\n\n"
        "Please describe your progress or current status:"
    )

    # ── Updates and completion ───────────────────────────────────────────────

    UPDATE_LOGGED = (
        "✅ *Update Logged: {reference}*\n\n"
        "📝 *Your Update:* {notes}\n\n"
        "📊 *Status:* {status}\n"
        "⏰ *Time:* {time}\n\n"
        "🔔 Reporter and supervisors have been notified.\n\n"
        "💡 Type /update to update more tasks or /assigned to see all your tasks."
    )
    TASK_COMPLETED = (
        "🎉 *Task Completed: {reference}*\n\n"
        "✅ *Status:* Task marked as complete\n"
        "⏰ *Completed:* {time}\n"
        "📝 *Notes:* {notes}\n\n"
        "🔔 All stakeholders have been notified.\n\n"
        "👍 Great work! Type /assigned to see your remaining tasks."
    )
    ALREADY_COMPLETED = (
        "Task *{reference}* is already completed.\n\nUse `/assigned` to see your open tasks."
    )
    SAVE_FAILED = "Failed to save your update. Please try again."

    # ── Direct commands ──────────────────────────────────────────────────────

    UPDATE_FORMAT_ERROR = (
        "📝 *Update Format Error*\n\n"
        "Correct formats:\n"
        "• `/update #REF your update message`\n"
        "• `/update 2 your update message` (task number from /assigned)\n\n"
        "Use `/assigned` to see your task list."
    )
    COMPLETE_FORMAT_ERROR = (
        "🎯 *Complete Format Error*\n\n"
        "Correct formats:\n"
        "• `/complete #REF [optional notes]`\n"
        "• `/complete 2 [optional notes]` (task number)\n\n"
        "Use `/assigned` to see your task list."
    )
    INVALID_REFERENCE = (
        "*Invalid Task Reference*: {identifier}\n\n"
        "Use a task number from /assigned (e.g. `2`) or a reference like `#SUBNG0`."
    )
    INVALID_TASK_NUMBER = (
        "*Invalid Task Number*: {number}\n\n"
        "Valid task numbers: 1-{count}\n\n"
        "Use `/assigned` to see your current tasks with numbers."
    )
    TASK_NOT_FOUND = (
        "Task *{reference}* not found.\n\n"
        "Use `/assigned` to see your current tasks with reference numbers."
    )

    # ── Reference lookups ────────────────────────────────────────────────────

    REFERENCE_DETAILS = (
        "📋 *Task Details: {reference}*\n\n"
        "{icon} *Status:* {status}\n"
        "🏷️ *Task:* {subcategory}\n"
        "📍 *Location:* {location}\n"
        "👤 *Reported by:* {reporter}\n"
        "📅 *Created:* {date}\n\n"
        "💡 *Actions:*\n"
        "• `/update {reference} your progress` to log progress\n"
        "• `/complete {reference}` to mark as done\n"
        "• Type /update for the full update interface"
    )
    REFERENCE_NOT_FOUND = (
        "Task {reference} not found or not accessible to you.\n\n"
        "Type /assigned to see your current tasks."
    )

    # ── Incident reports ─────────────────────────────────────────────────────

    REPORT_CREATED = (
        "✅ *Report Received: {reference}*\n\n"
        "🏷️ *Issue:* {subcategory}\n"
        "📍 *Location:* {location}\n"
        "🗂️ *Category:* {category}\n\n"
        "Thanks {name}! The team has been notified. "
        "Send {reference} at any time to check on it."
    )
    REPORT_FAILED = (
        "Sorry, I couldn't log your report right now. Please try again in a few minutes."
    )
    NO_CATEGORIES = "Reporting is not set up yet. Please contact the school office directly."
