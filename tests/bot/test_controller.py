"""Tests for the conversation controller, driven through a recording channel."""

import asyncio
import gc
import sqlite3
from decimal import Decimal

import pytest

from bot import replies
from bot.channel import CALLBACK, COMMAND, MESSAGE, ChannelError, DeliveryChannel, Event
from bot.controller import GREETING, THANKS, ConversationController, conversational_kind
from categorization import Classifier
from models.category import CategoryResult
from models.session import RecurringStep, Session, SessionState
from parsing import ExpenseParser


class FakeChannel(DeliveryChannel):
    """Records everything the controller delivers."""

    def __init__(self, clear_error=None):
        self.sent = []
        self.answers = []
        self.cleared = []
        self.clear_error = clear_error

    async def send(self, chat_id, text, controls=None):
        self.sent.append((chat_id, text, controls or []))

    async def answer(self, callback_id, text=None, alert=False):
        self.answers.append((callback_id, text, alert))

    async def clear_controls(self, chat_id, message_id):
        if self.clear_error is not None:
            raise self.clear_error
        self.cleared.append((chat_id, message_id))

    @property
    def texts(self):
        return [text for _, text, _ in self.sent]

    @property
    def last_text(self):
        return self.sent[-1][1]

    def last_action(self, label):
        """Find the action of a button in the last sent message by label prefix."""
        for row in self.sent[-1][2]:
            for button in row:
                if button.label.startswith(label):
                    return button.action
        raise AssertionError(f"No button starting with {label!r} in {self.sent[-1]}")


class FakeChatProvider:
    def __init__(self, reply=None, error=None):
        self.reply = reply
        self.error = error

    def chat_reply(self, text):
        if self.error:
            raise self.error
        return self.reply


@pytest.fixture
def channel():
    return FakeChannel()


@pytest.fixture
def controller(services, channel):
    return ConversationController(
        services=services,
        classifier=Classifier(learned_examples=services.learned_examples),
        parser=ExpenseParser(),
        channel=channel,
    )


def message(text, user_id="user1"):
    return Event(kind=MESSAGE, user_id=user_id, chat_id=100, text=text)


def command(text, user_id="user1"):
    return Event(kind=COMMAND, user_id=user_id, chat_id=100, text=text)


def press(data, user_id="user1", message_id=55):
    return Event(
        kind=CALLBACK,
        user_id=user_id,
        chat_id=100,
        callback_data=data,
        callback_id=f"cb-{data}",
        message_id=message_id,
    )


def handle(controller, *events):
    async def run():
        for event in events:
            await controller.handle(event)

    asyncio.run(run())


class TestConversationalKind:
    """Tests for conversational_kind."""

    @pytest.mark.parametrize(
        "text, expected",
        [
            ("hello", GREETING),
            ("Hi there!", GREETING),
            ("hola", GREETING),
            ("thanks!", THANKS),
            ("great, thank you", THANKS),
            ("chips", None),
            ("thanks 5 coffee", None),
            ("30 on food", None),
        ],
    )
    def test_detection(self, text, expected):
        """Test whole-word matching and the digit guard."""
        assert conversational_kind(text) == expected


class TestExpenseIntake:
    """Tests for logging, editing and deleting expenses."""

    def test_log_expense(self, controller, channel, services):
        """Test a free-text expense is parsed, classified and saved."""
        handle(controller, message("30 on food"))

        expense = services.expenses.find_latest("user1")
        assert expense.amount == Decimal("30")
        assert expense.category_path == "Food & Drinks>Meals"
        assert expense.description == "Food"
        assert channel.texts == ["✅ Expense saved: $30.00 on Food & Drinks>Meals\n📝 Food"]
        assert channel.last_action("✏️ Edit Amount") == f"edit:{expense.id}"
        assert channel.last_action("🗑️ Delete") == f"delete:{expense.id}"
        assert channel.answers == []

    def test_unparseable_text(self, controller, channel, services):
        """Test text without an amount gets the usage hint and stores nothing."""
        handle(controller, message("what is this"))

        assert channel.last_text.startswith("I'm not sure what you mean.")
        assert services.expenses.find_latest("user1") is None

    def test_greeting_is_not_parsed(self, controller, channel, services):
        """Test greetings are answered instead of parsed."""
        handle(controller, message("hello"), message("thanks!"))

        assert channel.texts[0].startswith("👋 Welcome to Hornerito!")
        assert channel.texts[1].startswith("😊 Glad I could help!")
        assert services.expenses.find_latest("user1") is None

    def test_word_containing_greeting_is_an_expense(self, controller, services):
        """Test "chips" is not mistaken for "hi"."""
        handle(controller, message("5 chips"))

        assert services.expenses.find_latest("user1").category_path == "Food & Drinks>Snacks"

    def test_generated_chat_reply(self, services, channel):
        """Test a configured chat provider answers greetings."""
        controller = ConversationController(
            services, Classifier(), ExpenseParser(), channel,
            chat_provider=FakeChatProvider(reply="¡Hola! 👋"),
        )

        handle(controller, message("hola"))

        assert channel.texts == ["¡Hola! 👋"]

    def test_chat_reply_failure_uses_canned_text(self, services, channel):
        """Test a failing chat provider falls back to the welcome message."""
        controller = ConversationController(
            services, Classifier(), ExpenseParser(), channel,
            chat_provider=FakeChatProvider(error=TimeoutError("slow")),
        )

        handle(controller, message("hello"))

        assert channel.last_text.startswith("👋 Welcome to Hornerito!")

    def test_delete_then_undo(self, controller, channel, services):
        """Test deleting clears the buttons and undo restores a copy."""
        handle(controller, message("30 on food"))
        original = services.expenses.find_latest("user1")

        handle(controller, press(f"delete:{original.id}"))

        assert services.expenses.find(original.id, "user1") is None
        assert channel.cleared == [(100, 55)]
        assert channel.last_text == "🗑️ Deleted expense: $30.00 on Food & Drinks>Meals"
        undo = channel.last_action("↩️ Undo")

        handle(controller, press(undo))

        restored = services.expenses.find_latest("user1")
        assert restored.id != original.id
        assert restored.amount == original.amount
        assert restored.category_path == original.category_path
        assert restored.description == original.description
        assert channel.last_text == "✅ Restored expense: $30.00 on Food & Drinks>Meals"

    def test_undo_is_single_shot(self, controller, channel, services):
        """Test pressing Undo twice restores only once."""
        handle(controller, message("30 on food"))
        expense = services.expenses.find_latest("user1")
        handle(controller, press(f"delete:{expense.id}"))
        undo = channel.last_action("↩️ Undo")

        handle(controller, press(undo), press(undo))

        assert channel.last_text == "🤷 Nothing to restore."
        assert len(services.expenses.find_recent("user1", limit=10)) == 1

    def test_undo_by_another_user(self, controller, channel, services):
        """Test an undo token only works for the user who deleted the expense."""
        handle(controller, message("30 on food"))
        expense = services.expenses.find_latest("user1")
        handle(controller, press(f"delete:{expense.id}"))
        undo = channel.last_action("↩️ Undo")

        handle(controller, press(undo, user_id="user2"))

        assert channel.last_text == "🤷 Nothing to restore."
        assert services.expenses.find_latest("user2") is None

    def test_double_delete(self, controller, channel, services):
        """Test a second delete of the same expense reports not found."""
        handle(controller, message("30 on food"))
        expense = services.expenses.find_latest("user1")

        handle(controller, press(f"delete:{expense.id}"), press(f"delete:{expense.id}"))

        assert channel.last_text == "❌ Expense not found."
        assert channel.answers[-1] == (f"cb-delete:{expense.id}", "Expense not found", False)

    def test_delete_last(self, controller, channel, services):
        """Test deleting the latest expense keeps the menu buttons."""
        handle(controller, message("30 on food"), message("5 coffee"))

        handle(controller, press("delete_last"))

        assert channel.last_text == "🗑️ Deleted last expense: $5.00 on Food & Drinks>Drinks/Coffee"
        assert channel.cleared == []
        assert services.expenses.find_latest("user1").description == "Food"

    def test_delete_last_without_expenses(self, controller, channel):
        """Test Delete Last with nothing recorded."""
        handle(controller, press("delete_last"))

        assert channel.last_text == "📭 No expenses recorded yet."

    def test_edit_amount(self, controller, channel, services):
        """Test the edit amount flow updates the expense and ends the flow."""
        handle(controller, message("30 on food"))
        expense = services.expenses.find_latest("user1")

        handle(controller, press(f"edit:{expense.id}"))
        assert services.sessions.load("user1").state == SessionState.EDITING_AMOUNT

        handle(controller, message("abc"))
        assert channel.last_text == "❌ Please send a valid number for the amount."
        assert services.sessions.load("user1").state == SessionState.EDITING_AMOUNT

        handle(controller, message("45"))

        assert channel.last_text == "✅ Amount updated: $45.00 on Food & Drinks>Meals"
        assert services.expenses.find(expense.id, "user1").amount == Decimal("45")
        assert services.sessions.load("user1") == Session()

    def test_edit_amount_of_another_users_expense(self, controller, channel, services):
        """Test editing is scoped to the owner."""
        handle(controller, message("30 on food"))
        expense = services.expenses.find_latest("user1")

        handle(controller, press(f"edit:{expense.id}", user_id="user2"))

        assert channel.last_text == "❌ Expense not found."
        assert services.sessions.load("user2") == Session()

    def test_edit_amount_after_delete(self, controller, channel, services):
        """Test an amount sent for a deleted expense ends the flow with not found."""
        handle(controller, message("30 on food"))
        expense = services.expenses.find_latest("user1")
        handle(controller, press(f"edit:{expense.id}"))
        services.expenses.delete(expense.id, "user1")

        handle(controller, message("45"))

        assert channel.last_text == "❌ Expense not found."
        assert services.sessions.load("user1") == Session()

    def test_edit_category_with_buttons(self, controller, channel, services):
        """Test picking a main category then a subcategory."""
        handle(controller, message("30 on food"))
        expense = services.expenses.find_latest("user1")

        handle(controller, press(f"editcat:{expense.id}"))
        assert channel.last_action("🚗 Transport") == "cat:1"

        handle(controller, press("cat:1"))
        assert channel.last_text.startswith("Select a subcategory for Transport:")
        assert channel.last_action("Fuel") == "subcat:1:1"

        handle(controller, press("subcat:1:1"))

        assert channel.last_text == "✅ Category updated: $30.00 on Transport>Fuel"
        assert services.expenses.find(expense.id, "user1").category_path == "Transport>Fuel"
        assert services.sessions.load("user1") == Session()

    def test_edit_category_typed(self, controller, channel, services):
        """Test typing a custom path updates the expense and teaches the classifier."""
        handle(controller, message("12 on quincho"))
        expense = services.expenses.find_latest("user1")
        handle(controller, press(f"editcat:{expense.id}"))

        handle(controller, message("no idea"))
        assert channel.last_text.startswith("Please pick a category with the buttons")

        handle(controller, message("Hobbies > Gaming"))

        assert services.expenses.find(expense.id, "user1").category_path == "Hobbies>Gaming"
        assert services.learned_examples.find("quincho") == CategoryResult("Hobbies", "Gaming")

    def test_category_pick_without_edit(self, controller, channel):
        """Test a stale category button with no edit in progress."""
        handle(controller, press("subcat:0:0"))

        assert channel.last_text == "🤷 Nothing selected. Tap Edit Category on an expense first."
        assert channel.answers == [("cb-subcat:0:0", "Nothing selected", False)]

    def test_cancel_clears_state(self, controller, channel, services):
        """Test "cancel" ends any flow."""
        handle(controller, message("30 on food"))
        expense = services.expenses.find_latest("user1")
        handle(controller, press(f"edit:{expense.id}"))

        handle(controller, message("Cancel"))

        assert channel.last_text == "❌ Operation cancelled"
        assert services.sessions.load("user1") == Session()
        assert services.expenses.find(expense.id, "user1").amount == Decimal("30")

    def test_view_and_stats(self, controller, channel):
        """Test the View Last 5 and stats buttons."""
        handle(controller, message("30 on food"), message("2.50 coffee"))

        handle(controller, press("view"))
        lines = channel.last_text.split("\n")
        assert len(lines) == 2
        assert lines[0].endswith("$2.50 on Food & Drinks>Drinks/Coffee (Coffee)")

        handle(controller, press("stats"))
        assert "💰 Total Expenses: $32.50" in channel.last_text

    def test_unknown_callback(self, controller, channel):
        """Test unknown button data is acknowledged without replies."""
        handle(controller, press("bogus:1"))

        assert channel.sent == []
        assert channel.answers == [("cb-bogus:1", "🤷 Unknown action", False)]


class TestRecurringWizard:
    """Tests for the recurring expense wizard."""

    def _start(self, controller, description="netflix subscription"):
        handle(
            controller,
            message("add recurring expense"),
            message("15.99"),
            message(description),
        )

    def test_complete_wizard(self, controller, channel, services):
        """Test amount, description, confirmation and frequency create one row."""
        self._start(controller)
        assert channel.last_text.startswith(
            '🤔 I think "Netflix Subscription" belongs in the '
            '"Entertainment>Movies & Streaming" category!'
        )

        handle(controller, press("cat_confirm"))
        assert channel.last_text == "⏰ How often should I track this expense?"

        handle(controller, press("freq:monthly"))

        active = services.recurring_expenses.find_active_by_user("user1")
        assert len(active) == 1
        assert active[0].amount == Decimal("15.99")
        assert active[0].description == "Netflix Subscription"
        assert active[0].category_path == "Entertainment>Movies & Streaming"
        assert active[0].frequency == "monthly"
        assert channel.answers[-1] == ("cb-freq:monthly", "✨ All set!", False)
        assert services.sessions.load("user1") == Session()

    def test_double_tap_frequency(self, controller, channel, services):
        """Test a second frequency press creates nothing."""
        self._start(controller)

        handle(controller, press("cat_confirm"), press("freq:weekly"), press("freq:weekly"))

        assert len(services.recurring_expenses.find_active_by_user("user1")) == 1
        assert channel.last_text == replies.nothing_in_progress().text

    def test_invalid_amount_stays_on_step(self, controller, channel, services):
        """Test the wizard asks again for a bad amount."""
        handle(controller, message("add recurring expense"), message("lots"))

        assert channel.last_text.startswith("❌ Oops! That doesn't look like a valid amount.")
        session = services.sessions.load("user1")
        assert session.in_recurring_step(RecurringStep.AMOUNT)

    def test_frequency_step_ignores_text(self, controller, channel, services):
        """Test typing at the frequency step repeats the buttons."""
        self._start(controller)
        handle(controller, press("cat_confirm"), message("monthly please"))

        assert channel.last_text == "👆 Please tap one of the frequency buttons."
        assert services.sessions.load("user1").in_recurring_step(RecurringStep.FREQUENCY)

    def test_manual_category_different_main(self, controller, channel, services):
        """Test the user chooses between their category and the suggestion."""
        self._start(controller, "gym membership")
        handle(controller, press("cat_change"), message("bills"))

        assert '1️⃣ Your suggestion: "Bills & Utilities"' in channel.last_text
        assert '2️⃣ My suggestion: "Health>Fitness"' in channel.last_text

        handle(controller, press("use_cat:mine"))
        assert channel.last_text.startswith('🎯 Great! Category set to "Bills & Utilities"')

        handle(controller, press("freq:weekly"))

        recurring = services.recurring_expenses.find_active_by_user("user1")[0]
        assert recurring.category == "Bills & Utilities"
        assert recurring.subcategory is None
        assert services.learned_examples.find("gym membership") == CategoryResult("Bills & Utilities")

    def test_manual_category_use_suggestion(self, controller, channel, services):
        """Test choosing the classifier's suggestion over the typed category."""
        self._start(controller, "gym membership")

        handle(controller, press("cat_change"), message("shopping"), press("use_cat:suggested"))

        session = services.sessions.load("user1")
        assert session.recurring_category == "Health>Fitness"
        assert session.suggested_category is None
        assert session.in_recurring_step(RecurringStep.FREQUENCY)

    def test_manual_category_same_main_keeps_specific(self, controller, channel, services):
        """Test a typed subcategory in the suggested main category wins without asking."""
        self._start(controller, "gym membership")

        handle(controller, press("cat_change"), message("Health > Climbing"))

        assert channel.last_text.startswith('🎯 Great! Category set to "Health>Climbing"')
        assert services.sessions.load("user1").recurring_category == "Health>Climbing"

    def test_manual_category_same_main_without_sub(self, controller, services):
        """Test a bare main category keeps the suggested subcategory."""
        self._start(controller, "gym membership")

        handle(controller, press("cat_change"), message("health"))

        assert services.sessions.load("user1").recurring_category == "Health>Fitness"

    def test_restart(self, controller, channel, services):
        """Test Start over returns to the amount step with nothing kept."""
        self._start(controller)

        handle(controller, press("cat_restart"))

        session = services.sessions.load("user1")
        assert session.in_recurring_step(RecurringStep.AMOUNT)
        assert session.recurring_amount is None
        assert session.recurring_description is None
        assert channel.last_text.startswith("🆕 Let's start fresh!")

    def test_cancel_button(self, controller, channel, services):
        """Test Cancel in the wizard discards everything."""
        self._start(controller)

        handle(controller, press("cancel"))

        assert services.sessions.load("user1") == Session()
        assert services.recurring_expenses.find_active_by_user("user1") == []
        assert channel.answers[-1] == ("cb-cancel", "❌ Cancelled!", False)

    def test_wizard_buttons_without_wizard(self, controller, channel):
        """Test stale wizard buttons are rejected."""
        handle(controller, press("cat_confirm"), press("use_cat:mine"), press("freq:daily"))

        assert channel.texts == [replies.nothing_in_progress().text] * 3

    def test_wizard_is_isolated_per_user(self, controller, channel, services):
        """Test another user's messages do not touch a running wizard."""
        handle(controller, message("add recurring expense"), message("15.99"))

        handle(controller, message("30 on food", user_id="user2"))

        assert services.expenses.find_latest("user2").amount == Decimal("30")
        assert services.expenses.find_latest("user1") is None
        assert services.sessions.load("user1").in_recurring_step(RecurringStep.DESCRIPTION)
        assert services.sessions.load("user2") == Session()

    def test_concurrent_events_are_serialized(self, controller, services):
        """Test events of one user are applied in arrival order."""

        async def run():
            await asyncio.gather(
                controller.handle(message("add recurring expense")),
                controller.handle(message("20")),
            )

        asyncio.run(run())

        session = services.sessions.load("user1")
        assert session.in_recurring_step(RecurringStep.DESCRIPTION)
        assert session.recurring_amount == Decimal("20")

    def test_user_locks_released(self, controller):
        """Test per-user locks do not outlive the events that used them."""
        handle(controller, *(message("hello", user_id=f"user{n}") for n in range(10)))
        gc.collect()

        assert len(controller._locks) == 0


class TestRecurringManagement:
    """Tests for listing and stopping recurring expenses."""

    def _create(self, services, description="Gym", amount="50", user_id="user1"):
        return services.recurring_expenses.create(
            user_id, Decimal(amount), "Health", "Fitness", description, "monthly"
        )

    def test_list_empty(self, controller, channel):
        """Test listing with nothing set up offers to add one."""
        handle(controller, message("show recurring"))

        assert channel.last_text.startswith("🔍 You don't have any recurring expenses")
        assert channel.last_action("➕ Add Recurring") == "add_rec"

    def test_list(self, controller, channel, services):
        """Test listing shows each expense and the monthly estimate."""
        recurring = self._create(services)

        handle(controller, command("/listrecurring"))

        assert f"• #{recurring.id} $50.00 - Gym (Health>Fitness) 💰" in channel.last_text
        assert "🎯 Estimated monthly spending: $50.00" in channel.last_text

    def test_remove_with_buttons(self, controller, channel, services):
        """Test the remove picker and removal."""
        recurring = self._create(services)

        handle(controller, press("remove_rec"))
        assert channel.last_action("$50.00 - Gym") == f"remove_rec:{recurring.id}"

        handle(controller, press(f"remove_rec:{recurring.id}"))

        assert services.recurring_expenses.find(recurring.id, "user1").active is False
        assert channel.texts[-2] == "✨ Recurring expense removed successfully!"
        assert channel.last_text.startswith("🔍 You don't have any recurring expenses")

    def test_remove_with_nothing_to_remove(self, controller, channel):
        """Test the picker is skipped when there is nothing to remove."""
        handle(controller, press("remove_rec"))

        assert channel.sent == []
        assert channel.answers == [("cb-remove_rec", "No recurring expenses to remove!", False)]

    def test_remove_twice(self, controller, channel, services):
        """Test removing an already stopped recurring expense."""
        recurring = self._create(services)

        handle(controller, press(f"remove_rec:{recurring.id}"), press(f"remove_rec:{recurring.id}"))

        assert channel.last_text == "❌ Recurring expense not found or already stopped."

    def test_stop_command(self, controller, channel, services):
        """Test /stoprecurring with and without a valid id."""
        recurring = self._create(services)
        other = self._create(services, user_id="user2")

        handle(
            controller,
            command("/stoprecurring"),
            command(f"/stoprecurring {other.id}"),
            command(f"/stoprecurring {recurring.id}"),
        )

        assert channel.texts[0].startswith("Please provide the recurring expense ID")
        assert channel.texts[1] == "❌ Recurring expense not found or already stopped."
        assert channel.texts[2] == "✨ Recurring expense removed successfully!"
        assert services.recurring_expenses.find(other.id, "user2").active is True


class TestCommands:
    """Tests for slash commands."""

    def test_start_and_help(self, controller, channel):
        """Test /start, and /help addressed to the bot in a group."""
        handle(controller, command("/start"), command("/help@hornerito_bot"))

        assert channel.texts[0].startswith("👋 Welcome to Hornerito!")
        assert channel.texts[1].startswith("🤖 Hornerito Help")

    def test_list_and_stats(self, controller, channel):
        """Test /list and /stats answer like their buttons."""
        handle(controller, message("30 on food"), command("/list"), command("/stats"))

        assert channel.texts[1].endswith("$30.00 on Food & Drinks>Meals (Food)")
        assert channel.texts[2].startswith("📊 Expense Statistics")
        assert "💰 Total Expenses: $30.00" in channel.texts[2]

    def test_list_without_expenses(self, controller, channel):
        """Test /list before anything is logged."""
        handle(controller, command("/list"))

        assert channel.last_text == "📭 No expenses recorded yet."

    def test_unknown_command(self, controller, channel):
        """Test an unknown command."""
        handle(controller, command("/frobnicate"))

        assert channel.last_text == "🤔 I don't know that command. Try /help."

    def test_cancel_command(self, controller, services):
        """Test /cancel ends a flow."""
        handle(controller, message("add recurring expense"), command("/cancel"))

        assert services.sessions.load("user1") == Session()


class TestFailures:
    """Tests for store and delivery failures."""

    def test_store_error_keeps_session(self, controller, channel, services, monkeypatch):
        """Test a failed save answers generically and leaves the session unchanged."""

        def failing_save(user_id, session):
            raise sqlite3.OperationalError("database is locked")

        monkeypatch.setattr(services.sessions, "save", failing_save)

        handle(controller, message("add recurring expense"))

        assert channel.texts == [replies.generic_error().text]
        assert services.sessions.load("user1") == Session()

    def test_store_error_on_callback(self, controller, channel, services, monkeypatch):
        """Test a failing store call answers the button with an alert text."""

        def failing_find(expense_id, user_id):
            raise sqlite3.OperationalError("disk I/O error")

        monkeypatch.setattr(services.expenses, "find", failing_find)

        handle(controller, press("edit:1"))

        assert channel.texts == [replies.generic_error().text]
        assert channel.answers == [("cb-edit:1", replies.ALERT_GENERIC, False)]

    @pytest.mark.parametrize(
        "kind, alert_text",
        [
            (ChannelError.PERMISSION, replies.ALERT_PERMISSION),
            (ChannelError.STALE, replies.ALERT_STALE),
            (ChannelError.OTHER, replies.ALERT_GENERIC),
        ],
    )
    def test_clear_controls_failure_alerts(self, services, kind, alert_text):
        """Test a failure to clear buttons becomes an alert and the delete still happens."""
        channel = FakeChannel(clear_error=ChannelError(kind, "nope"))
        controller = ConversationController(services, Classifier(), ExpenseParser(), channel)
        handle(controller, message("30 on food"))
        expense = services.expenses.find_latest("user1")

        handle(controller, press(f"delete:{expense.id}"))

        assert services.expenses.find(expense.id, "user1") is None
        assert channel.last_text.startswith("🗑️ Deleted expense")
        assert channel.answers == [(f"cb-delete:{expense.id}", alert_text, True)]
