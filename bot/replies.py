"""Reply texts and inline keyboards sent by the bot.

Every function returns a Reply so the controller never builds markup itself.
Texts are plain (no parse mode), so user input needs no escaping.
"""

from decimal import Decimal
from typing import Dict, List, Optional

import taxonomy
from bot import actions
from bot.channel import Button, Controls, Reply
from models.expense import Expense
from models.recurring_expense import RecurringExpense

FREQUENCY_LABELS = {"daily": "Daily", "weekly": "Weekly", "monthly": "Monthly"}

CATEGORY_ICONS = {
    "Food & Drinks": "🍽️",
    "Transport": "🚗",
    "Shopping": "🛍️",
    "Entertainment": "🎮",
    "Health": "💊",
    "Bills & Utilities": "🧾",
    "Miscellaneous": "📦",
}

USAGE_EXAMPLES = (
    "• '30 on food'\n"
    "• '25 taxi'\n"
    "• '10 coffee' (simple format works too!)"
)


def format_amount(amount: Decimal) -> str:
    return f"${amount:,.2f}"


def dashboard_button(dashboard_url: Optional[str]) -> Controls:
    """A single-row dashboard link, or nothing for unset or local URLs."""
    if not dashboard_url or "localhost" in dashboard_url:
        return []
    return [[Button("🌐 View Dashboard", url=dashboard_url)]]


def _cancel_row() -> List[Button]:
    return [Button("❌ Cancel", actions.CANCEL)]


def _view_button() -> Button:
    return Button("📊 View Last 5", actions.VIEW)


def expense_controls(expense_id: int, dashboard_url: Optional[str] = None) -> Controls:
    return [
        [
            Button("✏️ Edit Amount", actions.encode(actions.EDIT_AMOUNT, expense_id)),
            Button("🏷️ Edit Category", actions.encode(actions.EDIT_CATEGORY, expense_id)),
        ],
        [
            Button("🗑️ Delete", actions.encode(actions.DELETE, expense_id)),
            _view_button(),
        ],
    ] + dashboard_button(dashboard_url)


def _describe(amount: Decimal, category_path: str) -> str:
    return f"{format_amount(amount)} on {category_path}"


# Expenses


def expense_saved(expense: Expense, dashboard_url: Optional[str] = None) -> Reply:
    return Reply(
        f"✅ Expense saved: {_describe(expense.amount, expense.category_path)}\n"
        f"📝 {expense.description}",
        expense_controls(expense.id, dashboard_url),
    )


def usage_hint() -> Reply:
    return Reply(
        "I'm not sure what you mean. Try:\n"
        f"{USAGE_EXAMPLES}\n"
        "• Or just say 'help' for more info",
        [[_view_button()]],
    )


def edit_amount_prompt(expense: Expense) -> Reply:
    return Reply(
        f"✏️ Current expense: {_describe(expense.amount, expense.category_path)}\n\n"
        "Send the new amount:",
        [_cancel_row()],
    )


def invalid_amount(in_wizard: bool = False) -> Reply:
    if in_wizard:
        return Reply(
            "❌ Oops! That doesn't look like a valid amount.\n\n"
            "🔢 Please send me a number like 25.99 or 100\n"
            "Let's try again! 😊",
            [_cancel_row()],
        )
    return Reply("❌ Please send a valid number for the amount.", [_cancel_row()])


def amount_updated(
    expense_id: int,
    amount: Decimal,
    category_path: Optional[str],
    dashboard_url: Optional[str] = None,
) -> Reply:
    return Reply(
        f"✅ Amount updated: {_describe(amount, category_path or taxonomy.MISCELLANEOUS)}",
        expense_controls(expense_id, dashboard_url),
    )


def category_picker(expense: Expense) -> Reply:
    """Main category buttons, two per row."""
    buttons = [
        Button(f"{CATEGORY_ICONS.get(main, '')} {main}".strip(), actions.encode(actions.CATEGORY, index))
        for index, main in enumerate(taxonomy.main_categories())
    ]
    rows = [buttons[i:i + 2] for i in range(0, len(buttons), 2)]
    return Reply(
        f"Current expense: {_describe(expense.amount, expense.category_path)}\n\n"
        "Select new category:",
        rows + [_cancel_row()],
    )


def subcategory_picker(main_index: int) -> Reply:
    main = taxonomy.main_categories()[main_index]
    buttons = [
        Button(sub, actions.encode(actions.SUBCATEGORY, main_index, sub_index))
        for sub_index, sub in enumerate(taxonomy.subcategories(main))
    ]
    rows = [buttons[i:i + 2] for i in range(0, len(buttons), 2)]
    return Reply(
        f"Select a subcategory for {main}:\n\n"
        "Or type your own as: MainCategory > Subcategory",
        rows + [_cancel_row()],
    )


def custom_category_hint() -> Reply:
    return Reply(
        "Please pick a category with the buttons, or type your own category as:\n"
        "MainCategory > Subcategory\n"
        "Example: Hobbies > Gaming",
        [_cancel_row()],
    )


def category_updated(expense: Expense, dashboard_url: Optional[str] = None) -> Reply:
    return Reply(
        f"✅ Category updated: {_describe(expense.amount, expense.category_path)}",
        expense_controls(expense.id, dashboard_url),
    )


def expense_deleted(expense: Expense, undo_token: str, last: bool = False) -> Reply:
    label = "last expense" if last else "expense"
    return Reply(
        f"🗑️ Deleted {label}: {_describe(expense.amount, expense.category_path)}",
        [[Button("↩️ Undo", actions.encode(actions.RESTORE, undo_token)), _view_button()]],
    )


def expense_restored(expense: Expense) -> Reply:
    return Reply(
        f"✅ Restored expense: {_describe(expense.amount, expense.category_path)}",
        [
            [
                Button("✏️ Edit Amount", actions.encode(actions.EDIT_AMOUNT, expense.id)),
                Button("🏷️ Edit Category", actions.encode(actions.EDIT_CATEGORY, expense.id)),
            ],
            [_view_button()],
        ],
    )


def recent_expenses(expenses: List[Expense], dashboard_url: Optional[str] = None) -> Reply:
    if not expenses:
        return Reply("📭 No expenses recorded yet.", dashboard_button(dashboard_url))

    lines = [
        f"📅 {e.timestamp:%Y-%m-%d}: {_describe(e.amount, e.category_path)} ({e.description})"
        for e in expenses
    ]
    return Reply("\n".join(lines), dashboard_button(dashboard_url))


def no_expenses() -> Reply:
    return Reply("📭 No expenses recorded yet.")


def stats(totals: Dict[str, Decimal], dashboard_url: Optional[str] = None) -> Reply:
    return Reply(
        "📊 Expense Statistics\n\n"
        f"💰 Total Expenses: {format_amount(totals['total'])}\n"
        f"📅 Today: {format_amount(totals['today'])}\n"
        f"📆 This Month: {format_amount(totals['month'])}",
        [[_view_button(), Button("🔄 Refresh Stats", actions.STATS)]]
        + dashboard_button(dashboard_url),
    )


# Conversation


def welcome(dashboard_url: Optional[str] = None) -> Reply:
    return Reply(
        "👋 Welcome to Hornerito! I can help you track your expenses.\n\n"
        "💡 How to use me:\n"
        "• Send amount and category (e.g. '30 on food')\n"
        "• View your expenses with the buttons below\n"
        "• Edit or delete expenses as needed",
        [
            [_view_button(), Button("📈 View Stats", actions.STATS)],
            [
                Button("❌ Delete Last Expense", actions.DELETE_LAST),
                Button("❓ Help", actions.HELP),
            ],
        ]
        + dashboard_button(dashboard_url),
    )


def thanks(dashboard_url: Optional[str] = None) -> Reply:
    return Reply(
        "😊 Glad I could help!\n\n"
        "If you have any expense to record, just let me know! You can use:\n"
        f"{USAGE_EXAMPLES}",
        [[_view_button()]] + dashboard_button(dashboard_url),
    )


def chat(text: str, dashboard_url: Optional[str] = None) -> Reply:
    return Reply(text, [[_view_button()]] + dashboard_button(dashboard_url))


def help_message() -> Reply:
    categories = "\n".join(f"• {main}" for main in taxonomy.main_categories())
    return Reply(
        "🤖 Hornerito Help\n\n"
        "📝 Adding Expenses\n"
        "• Send: amount on category\n"
        "• Example: 30 on food\n"
        "• Example: 25.50 for taxi\n\n"
        f"🔍 Categories\n{categories}\n\n"
        "✏️ Editing\n"
        "• Tap Edit Amount to change the amount\n"
        "• Tap Edit Category to change the category\n\n"
        "🔁 Recurring Expenses\n"
        "• Say 'add recurring expense' to set one up\n"
        "• Say 'show recurring' or use /listrecurring to see them\n"
        "• Use /stoprecurring <id> to stop one\n\n"
        "📊 Viewing\n"
        "• Tap View Last 5 or use /list to see recent expenses\n"
        "• Tap View Stats or use /stats for your totals\n"
        "• Use the dashboard for detailed analysis\n\n"
        "Say 'cancel' at any time to stop what you're doing.",
        [
            [_view_button(), Button("📈 View Stats", actions.STATS)],
            _cancel_row(),
        ],
    )


def cancelled() -> Reply:
    return Reply("❌ Operation cancelled")


def not_found() -> Reply:
    return Reply("❌ Expense not found.")


def nothing_selected() -> Reply:
    return Reply("🤷 Nothing selected. Tap Edit Category on an expense first.")


def nothing_in_progress() -> Reply:
    return Reply("🤷 Nothing in progress. Say 'add recurring expense' to start.")


def nothing_to_restore() -> Reply:
    return Reply("🤷 Nothing to restore.")


def generic_error() -> Reply:
    return Reply("😅 Oops! Something went wrong.\nPlease try again in a moment! 🔄")


def unknown_command() -> Reply:
    return Reply("🤔 I don't know that command. Try /help.")


# Recurring expenses


def frequency_buttons() -> Controls:
    return [
        [
            Button(f"📅 {label}", actions.encode(actions.FREQUENCY, frequency))
            for frequency, label in FREQUENCY_LABELS.items()
        ],
        _cancel_row(),
    ]


def wizard_amount_prompt(restart: bool = False) -> Reply:
    if restart:
        text = (
            "🆕 Let's start fresh!\n\n"
            "💰 What's the amount for this recurring expense?"
        )
    else:
        text = (
            "🎯 Awesome! Let's set up a recurring expense together!\n\n"
            "💰 First, what's the amount you want to track?\n"
            "Just send me a number (like 25.99) 👇"
        )
    return Reply(text, [_cancel_row()])


def wizard_description_prompt() -> Reply:
    return Reply(
        "🌟 Perfect! Now, what is this expense for?\n\n"
        "💡 Examples:\n"
        "• Netflix subscription 📺\n"
        "• Gym membership 🏋️\n"
        "• Monthly bus pass 🚌\n"
        "• Phone bill 📱",
        [_cancel_row()],
    )


def category_suggestion(description: str, category_path: str) -> Reply:
    return Reply(
        f"🤔 I think \"{description}\" belongs in the \"{category_path}\" category!\n\n"
        "✨ Did I get that right?",
        [
            [
                Button("✅ Yes, perfect!", actions.CAT_CONFIRM),
                Button("✏️ Need to change it", actions.CAT_CHANGE),
            ],
            [
                Button("🔄 Start over", actions.CAT_RESTART),
                Button("❌ Cancel", actions.CANCEL),
            ],
        ],
    )


def manual_category_prompt() -> Reply:
    return Reply(
        "📝 What category should we use instead?\n\n"
        "💡 Examples:\n"
        "• Food 🍜\n"
        "• Transport 🚌\n"
        "• Entertainment 🎮\n"
        "• Bills 📱\n\n"
        "You can also type MainCategory > Subcategory",
        [_cancel_row()],
    )


def category_choice(mine: str, suggested: str) -> Reply:
    return Reply(
        "🤔 I have two options for categorizing this:\n\n"
        f"1️⃣ Your suggestion: \"{mine}\"\n"
        f"2️⃣ My suggestion: \"{suggested}\"\n\n"
        "✨ Which one should we use?",
        [
            [
                Button("1️⃣ Use mine", actions.encode(actions.USE_CATEGORY, actions.USE_MINE)),
                Button("2️⃣ Use suggestion", actions.encode(actions.USE_CATEGORY, actions.USE_SUGGESTED)),
            ],
            _cancel_row(),
        ],
    )


def frequency_prompt(category_path: Optional[str] = None) -> Reply:
    text = "⏰ How often should I track this expense?"
    if category_path:
        text = f"🎯 Great! Category set to \"{category_path}\"\n\n{text}"
    return Reply(text, frequency_buttons())


def frequency_reminder() -> Reply:
    return Reply("👆 Please tap one of the frequency buttons.", frequency_buttons())


def recurring_created(recurring: RecurringExpense) -> Reply:
    return Reply(
        "🎉 Woohoo! Your recurring expense is all set up!\n\n"
        f"💰 Amount: {format_amount(recurring.amount)}\n"
        f"📂 Category: {recurring.category_path}\n"
        f"📝 Description: {recurring.description}\n"
        f"⏰ Frequency: {recurring.frequency}\n\n"
        "✅ I'll automatically track this for you!\n\n"
        "💡 Tip: Use /listrecurring to see all your recurring expenses! 📋"
    )


def _recurring_line(recurring: RecurringExpense) -> str:
    return (
        f"• #{recurring.id} {format_amount(recurring.amount)} - "
        f"{recurring.description} ({recurring.category_path}) 💰"
    )


def recurring_summary(summary: Dict, dashboard_url: Optional[str] = None) -> Reply:
    """Render the output of tools.summaries.get_recurring_summary."""
    groups = summary["groups"]
    if not groups:
        return Reply(
            "🔍 You don't have any recurring expenses set up yet!\n\n"
            "💡 Want to add one? Just say 'add recurring expense'!",
            [[Button("➕ Add Recurring", actions.ADD_RECURRING)]],
        )

    lines = ["📋 Here are your recurring expenses:", ""]
    for frequency, members in groups.items():
        lines.append(f"📅 {FREQUENCY_LABELS[frequency]}:")
        lines.extend(_recurring_line(r) for r in members)
        lines.append("")

    lines.append("💫 Summary:")
    for frequency, total in summary["totals"].items():
        lines.append(f"{FREQUENCY_LABELS[frequency]} total: {format_amount(total)}")
    lines.append("")
    lines.append(f"🎯 Estimated monthly spending: {format_amount(summary['estimated_monthly'])}")

    return Reply(
        "\n".join(lines),
        [
            [
                Button("➕ Add New", actions.ADD_RECURRING),
                Button("🗑️ Remove One", actions.REMOVE_RECURRING),
            ]
        ]
        + dashboard_button(dashboard_url),
    )


def remove_recurring_picker(recurring: List[RecurringExpense]) -> Reply:
    rows = [
        [
            Button(
                f"{format_amount(r.amount)} - {r.description} ({r.frequency})",
                actions.encode(actions.REMOVE_RECURRING, r.id),
            )
        ]
        for r in recurring
    ]
    return Reply("🗑️ Which recurring expense would you like to remove?", rows + [_cancel_row()])


def recurring_removed() -> Reply:
    return Reply("✨ Recurring expense removed successfully!")


def recurring_not_found() -> Reply:
    return Reply("❌ Recurring expense not found or already stopped.")


def stop_recurring_usage() -> Reply:
    return Reply(
        "Please provide the recurring expense ID, e.g. /stoprecurring 3\n"
        "Use /listrecurring to see all IDs."
    )


def recurring_tracked(expense: Expense) -> Reply:
    return Reply(
        f"🔁 Tracked recurring expense: {_describe(expense.amount, expense.category_path)}\n"
        f"📝 {expense.description}",
        expense_controls(expense.id),
    )


# Callback answers (toasts and alerts)

ALERT_PERMISSION = "⚠️ I don't have permission to change that message."
ALERT_STALE = "⚠️ That message is too old to change."
ALERT_GENERIC = "⚠️ Something went wrong."
