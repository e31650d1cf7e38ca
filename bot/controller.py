"""Conversation controller.

Single entry point for every inbound event. For each event the controller:

1. Serializes on the user's lock, so two updates from one user never
   interleave their load-mutate-save of the session
2. Loads the session and works on a copy of it
3. Dispatches on (event kind, session state)
4. Saves the copy if the handler finished and changed it
5. Delivers the replies and acknowledges the button press

Store calls and classification run in worker threads; nothing blocks the
event loop. No exception escapes handle().
"""

import asyncio
import re
import sqlite3
import weakref
from dataclasses import dataclass, field
from typing import List, Optional

import taxonomy
from bot import actions
from bot import replies
from bot.channel import CALLBACK, COMMAND, ChannelError, DeliveryChannel, Event, Reply
from bot.undo import UndoCache
from categorization import Classifier
from llm.providers.base import LLMProvider
from logger import get_logger
from models.category import SEPARATOR, CategoryResult
from models.expense import Expense
from models.recurring_expense import FREQUENCIES
from models.session import RecurringStep, Session, SessionState
from parsing import ExpenseParser, parse_amount, title_case
from tools.summaries import get_expense_stats, get_recurring_summary

logger = get_logger()

CANCEL_WORDS = frozenset({"cancel"})

RECURRING_LIST_PHRASES = frozenset({
    "show recurring",
    "list recurring",
    "recurring expenses",
    "show recurring expenses",
    "show my recurring expenses",
})

ADD_RECURRING_PHRASES = frozenset({
    "add recurring expense",
    "recurring expense",
    "add recurring",
})

HELP_WORDS = frozenset({"help"})
GREETING_WORDS = frozenset({"hey", "hello", "hi", "hola", "start", "howdy"})
THANKS_WORDS = frozenset({
    "thanks", "thank", "thx", "great", "good", "nice", "awesome", "cool", "perfect",
})

_WORD_RE = re.compile(r"[^\W\d_]+")

GREETING = "greeting"
THANKS = "thanks"


def conversational_kind(text: str) -> Optional[str]:
    """Detect greetings and thanks.

    A message is conversational only when it has no digits and one of its
    words is a greeting or thanks word, so "hi" never matches inside "chips"
    and "thanks, 5 coffee" is still parsed as an expense.

    Returns:
        GREETING, THANKS or None.
    """
    if any(ch.isdigit() for ch in text):
        return None
    words = set(_WORD_RE.findall(text.lower()))
    if words & GREETING_WORDS:
        return GREETING
    if words & THANKS_WORDS:
        return THANKS
    return None


@dataclass
class Outcome:
    """What a handler wants delivered once it is done."""

    replies: List[Reply] = field(default_factory=list)
    answer_text: Optional[str] = None
    alert: bool = False
    clear_controls: bool = False

    def reply(self, reply: Reply) -> None:
        self.replies.append(reply)


class ConversationController:
    """Drives the expense intake state machine.

    Args:
        services: Services container.
        classifier: Classifier for expense descriptions.
        parser: ExpenseParser for free-text expense messages.
        channel: DeliveryChannel replies are sent through.
        dashboard_url: Optional dashboard link added to expense replies.
        chat_provider: Optional LLM provider for greeting replies.
        undo_cache: Cache of deleted expenses; a new one is created if omitted.
    """

    def __init__(
        self,
        services,
        classifier: Classifier,
        parser: ExpenseParser,
        channel: DeliveryChannel,
        dashboard_url: Optional[str] = None,
        chat_provider: Optional[LLMProvider] = None,
        undo_cache: Optional[UndoCache] = None,
    ):
        self.services = services
        self.classifier = classifier
        self.parser = parser
        self.channel = channel
        self.dashboard_url = dashboard_url
        self.chat_provider = chat_provider
        self.undo_cache = undo_cache if undo_cache is not None else UndoCache()
        # Dropped once no event of the user holds or waits on it
        self._locks: "weakref.WeakValueDictionary[str, asyncio.Lock]" = weakref.WeakValueDictionary()

        self._callbacks = {
            actions.CANCEL: self._on_cancel_button,
            actions.EDIT_AMOUNT: self._on_edit_amount,
            actions.EDIT_CATEGORY: self._on_edit_category,
            actions.CATEGORY: self._on_category_pick,
            actions.SUBCATEGORY: self._on_subcategory_pick,
            actions.DELETE: self._on_delete,
            actions.DELETE_LAST: self._on_delete_last,
            actions.RESTORE: self._on_restore,
            actions.VIEW: self._on_view,
            actions.STATS: self._on_stats,
            actions.HELP: self._on_help,
            actions.ADD_RECURRING: self._on_add_recurring,
            actions.REMOVE_RECURRING: self._on_remove_recurring,
            actions.CAT_CONFIRM: self._on_cat_confirm,
            actions.CAT_CHANGE: self._on_cat_change,
            actions.CAT_RESTART: self._on_cat_restart,
            actions.USE_CATEGORY: self._on_use_category,
            actions.FREQUENCY: self._on_frequency,
        }

        self._commands = {
            "start": self._on_start_command,
            "help": self._on_help_command,
            "list": self._on_view,
            "stats": self._on_stats,
            "listrecurring": self._on_list_recurring_command,
            "stoprecurring": self._on_stop_recurring_command,
            "cancel": self._on_cancel_command,
        }

    async def handle(self, event: Event) -> None:
        """Process one inbound event. Never raises."""
        async with self._lock_for(event.user_id):
            try:
                outcome = await self._process(event)
                await self._deliver(event, outcome)
            except Exception as e:
                logger.exception(f"Unhandled error delivering {event.kind} for user {event.user_id}: {e}")

    def _lock_for(self, user_id: str) -> asyncio.Lock:
        lock = self._locks.get(user_id)
        if lock is None:
            lock = self._locks[user_id] = asyncio.Lock()
        return lock

    async def _process(self, event: Event) -> Outcome:
        outcome = Outcome()
        try:
            stored = await self._store("load session", self.services.sessions.load, event.user_id)
            session = stored.copy()

            if event.kind == CALLBACK:
                await self._on_callback(event, session, outcome)
            elif event.kind == COMMAND:
                await self._on_command(event, session, outcome)
            else:
                await self._on_message(event, session, outcome)

            if session != stored:
                if session == Session():
                    await self._store("clear session", self.services.sessions.clear, event.user_id)
                else:
                    await self._store("save session", self.services.sessions.save, event.user_id, session)
        except sqlite3.Error:
            # Already logged with context by _store; session changes are dropped
            return Outcome(replies=[replies.generic_error()], answer_text=replies.ALERT_GENERIC)
        except Exception as e:
            logger.exception(f"Error handling {event.kind} for user {event.user_id}: {e}")
            return Outcome(replies=[replies.generic_error()], answer_text=replies.ALERT_GENERIC)

        return outcome

    async def _deliver(self, event: Event, outcome: Outcome) -> None:
        if outcome.clear_controls and event.message_id is not None:
            try:
                await self.channel.clear_controls(event.chat_id, event.message_id)
            except ChannelError as e:
                logger.warning(
                    f"Could not clear controls of message {event.message_id} "
                    f"for user {event.user_id}: {e.kind} {e}"
                )
                outcome.answer_text = _alert_for(e)
                outcome.alert = True

        for reply in outcome.replies:
            try:
                await self.channel.send(event.chat_id, reply.text, reply.controls)
            except ChannelError as e:
                logger.error(f"Could not send reply to user {event.user_id}: {e.kind} {e}")
                break

        if event.kind == CALLBACK and event.callback_id is not None:
            try:
                await self.channel.answer(event.callback_id, outcome.answer_text, outcome.alert)
            except ChannelError as e:
                logger.warning(f"Could not answer callback for user {event.user_id}: {e.kind} {e}")

    async def _store(self, operation: str, func, *args, **kwargs):
        """Run a blocking store call in a worker thread, logging failures with context."""
        try:
            return await asyncio.to_thread(func, *args, **kwargs)
        except sqlite3.Error as e:
            logger.error(f"Store error during {operation} {args}: {e}")
            raise

    # Text messages

    async def _on_message(self, event: Event, session: Session, outcome: Outcome) -> None:
        text = (event.text or "").strip()
        lowered = text.lower()

        if lowered in CANCEL_WORDS:
            session.clear()
            outcome.reply(replies.cancelled())
        elif session.state == SessionState.EDITING_AMOUNT:
            await self._on_new_amount(event, session, text, outcome)
        elif session.state == SessionState.EDITING_CATEGORY:
            await self._on_custom_category(event, session, text, outcome)
        elif session.state == SessionState.RECURRING_WIZARD:
            await self._on_wizard_text(event, session, text, outcome)
        else:
            await self._on_idle_text(event, session, text, outcome)

    async def _on_idle_text(self, event: Event, session: Session, text: str, outcome: Outcome) -> None:
        lowered = text.lower()

        if lowered in RECURRING_LIST_PHRASES:
            await self._show_recurring(event.user_id, outcome)
            return

        if lowered in ADD_RECURRING_PHRASES:
            session.start_recurring()
            outcome.reply(replies.wizard_amount_prompt())
            return

        if lowered in HELP_WORDS:
            outcome.reply(replies.help_message())
            return

        kind = conversational_kind(text)
        if kind is not None:
            outcome.reply(await self._conversational_reply(text, kind))
            return

        parsed = await asyncio.to_thread(self.parser.parse, text)
        if parsed is None:
            outcome.reply(replies.usage_hint())
            return

        result = await asyncio.to_thread(self.classifier.classify, parsed.description)
        expense = await self._store(
            "create expense",
            self.services.expenses.create,
            event.user_id,
            parsed.amount,
            result.category,
            result.subcategory,
            title_case(parsed.description),
        )
        logger.info(f"Saved expense {expense.id} for user {event.user_id}: {expense.amount} on {result.path}")
        outcome.reply(replies.expense_saved(expense, self.dashboard_url))

    async def _conversational_reply(self, text: str, kind: str) -> Reply:
        if self.chat_provider is not None:
            try:
                generated = await asyncio.to_thread(self.chat_provider.chat_reply, text)
            except Exception as e:
                logger.warning(f"Chat reply generation failed: {e}")
                generated = None
            if generated:
                return replies.chat(generated, self.dashboard_url)

        if kind == GREETING:
            return replies.welcome(self.dashboard_url)
        return replies.thanks(self.dashboard_url)

    async def _on_new_amount(self, event: Event, session: Session, text: str, outcome: Outcome) -> None:
        amount = parse_amount(text)
        if amount is None:
            outcome.reply(replies.invalid_amount())
            return

        expense_id = session.editing_expense_id
        category_path = session.original_category
        changed = await self._store(
            "update amount", self.services.expenses.update_amount, expense_id, event.user_id, amount
        )
        session.clear()

        if not changed:
            outcome.reply(replies.not_found())
            return

        logger.info(f"Updated amount of expense {expense_id} for user {event.user_id} to {amount}")
        outcome.reply(replies.amount_updated(expense_id, amount, category_path, self.dashboard_url))

    async def _on_custom_category(self, event: Event, session: Session, text: str, outcome: Outcome) -> None:
        if SEPARATOR not in text:
            outcome.reply(replies.custom_category_hint())
            return

        try:
            result = CategoryResult.from_path(text)
        except ValueError:
            outcome.reply(replies.custom_category_hint())
            return

        await self._apply_category(event, session, result, outcome)

    async def _apply_category(
        self, event: Event, session: Session, result: CategoryResult, outcome: Outcome
    ) -> None:
        expense_id = session.editing_category_id
        expense = await self._store("find expense", self.services.expenses.find, expense_id, event.user_id)
        changed = 0
        if expense is not None:
            changed = await self._store(
                "update category",
                self.services.expenses.update_category,
                expense_id,
                event.user_id,
                result.category,
                result.subcategory,
            )
        session.clear()

        if not changed:
            outcome.reply(replies.not_found())
            return

        await asyncio.to_thread(self.classifier.learn, expense.description, result)
        expense.category, expense.subcategory = result.category, result.subcategory
        logger.info(f"Updated category of expense {expense_id} for user {event.user_id} to {result.path}")
        outcome.reply(replies.category_updated(expense, self.dashboard_url))

    async def _on_wizard_text(self, event: Event, session: Session, text: str, outcome: Outcome) -> None:
        step = session.recurring_step

        if step == RecurringStep.AMOUNT:
            amount = parse_amount(text)
            if amount is None:
                outcome.reply(replies.invalid_amount(in_wizard=True))
                return
            session.recurring_amount = amount
            session.recurring_step = RecurringStep.DESCRIPTION
            outcome.reply(replies.wizard_description_prompt())

        elif step == RecurringStep.DESCRIPTION:
            if not text:
                outcome.reply(replies.wizard_description_prompt())
                return
            description = title_case(text)
            result = await asyncio.to_thread(self.classifier.classify, text)
            session.recurring_description = description
            session.recurring_category = result.path
            outcome.reply(replies.category_suggestion(description, result.path))

        elif step == RecurringStep.MANUAL_CATEGORY:
            await self._on_manual_category(session, text, outcome)

        else:
            outcome.reply(replies.frequency_reminder())

    async def _on_manual_category(self, session: Session, text: str, outcome: Outcome) -> None:
        mine = _user_category(text)
        if mine is None:
            outcome.reply(replies.manual_category_prompt())
            return

        suggested = CategoryResult.from_path(session.recurring_category or taxonomy.MISCELLANEOUS)
        if not mine.same_main_category(suggested):
            session.recurring_category = mine.path
            session.suggested_category = suggested.path
            outcome.reply(replies.category_choice(mine.path, suggested.path))
            return

        # Same main category: keep the more specific of the two
        chosen = mine if mine.subcategory else suggested
        await asyncio.to_thread(self.classifier.learn, session.recurring_description, chosen)
        session.recurring_category = chosen.path
        session.suggested_category = None
        session.recurring_step = RecurringStep.FREQUENCY
        outcome.reply(replies.frequency_prompt(chosen.path))

    async def _show_recurring(self, user_id: str, outcome: Outcome) -> None:
        summary = await self._store("list recurring", get_recurring_summary, self.services, user_id)
        outcome.reply(replies.recurring_summary(summary, self.dashboard_url))

    # Button presses

    async def _on_callback(self, event: Event, session: Session, outcome: Outcome) -> None:
        action, args = actions.decode(event.callback_data)
        handler = self._callbacks.get(action)
        if handler is None:
            logger.warning(f"Unknown callback data from user {event.user_id}: {event.callback_data!r}")
            outcome.answer_text = "🤷 Unknown action"
            return
        await handler(event, session, args, outcome)

    async def _on_cancel_button(self, event, session, args, outcome) -> None:
        session.clear()
        outcome.answer_text = "❌ Cancelled!"
        outcome.reply(replies.cancelled())

    async def _find_expense(self, event: Event, args: List[str]) -> Optional[Expense]:
        expense_id = _int_arg(args)
        if expense_id is None:
            return None
        return await self._store("find expense", self.services.expenses.find, expense_id, event.user_id)

    async def _on_edit_amount(self, event, session, args, outcome) -> None:
        expense = await self._find_expense(event, args)
        if expense is None:
            outcome.reply(replies.not_found())
            return
        session.start_edit_amount(expense.id, expense.category_path)
        outcome.reply(replies.edit_amount_prompt(expense))

    async def _on_edit_category(self, event, session, args, outcome) -> None:
        expense = await self._find_expense(event, args)
        if expense is None:
            outcome.reply(replies.not_found())
            return
        session.start_edit_category(expense.id, expense.amount)
        outcome.reply(replies.category_picker(expense))

    async def _on_category_pick(self, event, session, args, outcome) -> None:
        if session.state != SessionState.EDITING_CATEGORY:
            outcome.answer_text = "Nothing selected"
            outcome.reply(replies.nothing_selected())
            return

        main_index = _int_arg(args)
        if main_index is None or not 0 <= main_index < len(taxonomy.main_categories()):
            outcome.reply(replies.custom_category_hint())
            return
        outcome.reply(replies.subcategory_picker(main_index))

    async def _on_subcategory_pick(self, event, session, args, outcome) -> None:
        if session.state != SessionState.EDITING_CATEGORY:
            outcome.answer_text = "Nothing selected"
            outcome.reply(replies.nothing_selected())
            return

        result = _taxonomy_pick(args)
        if result is None:
            outcome.reply(replies.custom_category_hint())
            return
        await self._apply_category(event, session, result, outcome)

    async def _on_delete(self, event, session, args, outcome) -> None:
        expense = await self._find_expense(event, args)
        await self._delete(event, expense, outcome, last=False)

    async def _on_delete_last(self, event, session, args, outcome) -> None:
        expense = await self._store("find latest expense", self.services.expenses.find_latest, event.user_id)
        if expense is None:
            outcome.reply(replies.no_expenses())
            return
        await self._delete(event, expense, outcome, last=True)

    async def _delete(self, event: Event, expense: Optional[Expense], outcome: Outcome, last: bool) -> None:
        deleted = 0
        if expense is not None:
            deleted = await self._store(
                "delete expense", self.services.expenses.delete, expense.id, event.user_id
            )
        if not deleted:
            outcome.answer_text = "Expense not found"
            outcome.reply(replies.not_found())
            return

        token = self.undo_cache.put(expense)
        logger.info(f"Deleted expense {expense.id} for user {event.user_id}")
        outcome.clear_controls = not last
        outcome.reply(replies.expense_deleted(expense, token, last=last))

    async def _on_restore(self, event, session, args, outcome) -> None:
        token = args[0] if args else ""
        snapshot = self.undo_cache.get(token, event.user_id)
        if snapshot is None:
            outcome.reply(replies.nothing_to_restore())
            return

        expense = await self._store(
            "restore expense",
            self.services.expenses.create,
            event.user_id,
            snapshot.amount,
            snapshot.category,
            snapshot.subcategory,
            snapshot.description,
        )
        self.undo_cache.discard(token)
        logger.info(f"Restored deleted expense as {expense.id} for user {event.user_id}")
        outcome.reply(replies.expense_restored(expense))

    async def _on_view(self, event, session, args, outcome) -> None:
        expenses = await self._store("list expenses", self.services.expenses.find_recent, event.user_id, 5)
        outcome.reply(replies.recent_expenses(expenses, self.dashboard_url))

    async def _on_stats(self, event, session, args, outcome) -> None:
        totals = await self._store("expense stats", get_expense_stats, self.services, event.user_id)
        outcome.reply(replies.stats(totals, self.dashboard_url))

    async def _on_help(self, event, session, args, outcome) -> None:
        outcome.reply(replies.help_message())

    async def _on_add_recurring(self, event, session, args, outcome) -> None:
        session.start_recurring()
        outcome.reply(replies.wizard_amount_prompt())

    async def _on_remove_recurring(self, event, session, args, outcome) -> None:
        if not args:
            recurring = await self._store(
                "list recurring", self.services.recurring_expenses.find_active_by_user, event.user_id
            )
            if not recurring:
                outcome.answer_text = "No recurring expenses to remove!"
                return
            outcome.reply(replies.remove_recurring_picker(recurring))
            return

        recurring_id = _int_arg(args)
        changed = 0
        if recurring_id is not None:
            changed = await self._store(
                "deactivate recurring",
                self.services.recurring_expenses.deactivate,
                recurring_id,
                event.user_id,
            )
        if not changed:
            outcome.reply(replies.recurring_not_found())
            return

        logger.info(f"Deactivated recurring expense {recurring_id} for user {event.user_id}")
        outcome.answer_text = "✅ Removed!"
        outcome.reply(replies.recurring_removed())
        await self._show_recurring(event.user_id, outcome)

    def _awaiting_confirmation(self, session: Session) -> bool:
        return (
            session.in_recurring_step(RecurringStep.DESCRIPTION)
            and session.recurring_category is not None
        )

    async def _on_cat_confirm(self, event, session, args, outcome) -> None:
        if not self._awaiting_confirmation(session):
            outcome.reply(replies.nothing_in_progress())
            return
        session.recurring_step = RecurringStep.FREQUENCY
        outcome.answer_text = "✅ Perfect!"
        outcome.reply(replies.frequency_prompt())

    async def _on_cat_change(self, event, session, args, outcome) -> None:
        if not self._awaiting_confirmation(session):
            outcome.reply(replies.nothing_in_progress())
            return
        session.recurring_step = RecurringStep.MANUAL_CATEGORY
        outcome.answer_text = "✏️ Let's fix that!"
        outcome.reply(replies.manual_category_prompt())

    async def _on_cat_restart(self, event, session, args, outcome) -> None:
        if session.state != SessionState.RECURRING_WIZARD:
            outcome.reply(replies.nothing_in_progress())
            return
        session.start_recurring()
        outcome.answer_text = "🔄 Starting over!"
        outcome.reply(replies.wizard_amount_prompt(restart=True))

    async def _on_use_category(self, event, session, args, outcome) -> None:
        choice = args[0] if args else ""
        if (
            not session.in_recurring_step(RecurringStep.MANUAL_CATEGORY)
            or session.suggested_category is None
            or choice not in (actions.USE_MINE, actions.USE_SUGGESTED)
        ):
            outcome.reply(replies.nothing_in_progress())
            return

        path = session.recurring_category if choice == actions.USE_MINE else session.suggested_category
        chosen = CategoryResult.from_path(path)
        await asyncio.to_thread(self.classifier.learn, session.recurring_description, chosen)
        session.recurring_category = chosen.path
        session.suggested_category = None
        session.recurring_step = RecurringStep.FREQUENCY
        outcome.reply(replies.frequency_prompt(chosen.path))

    async def _on_frequency(self, event, session, args, outcome) -> None:
        frequency = args[0] if args else ""
        if not session.in_recurring_step(RecurringStep.FREQUENCY) or frequency not in FREQUENCIES:
            outcome.reply(replies.nothing_in_progress())
            return

        result = CategoryResult.from_path(session.recurring_category or taxonomy.MISCELLANEOUS)
        recurring = await self._store(
            "create recurring",
            self.services.recurring_expenses.create,
            event.user_id,
            session.recurring_amount,
            result.category,
            result.subcategory,
            session.recurring_description,
            frequency,
        )
        session.clear()
        logger.info(f"Created {frequency} recurring expense {recurring.id} for user {event.user_id}")
        outcome.answer_text = "✨ All set!"
        outcome.reply(replies.recurring_created(recurring))

    # Commands

    async def _on_command(self, event: Event, session: Session, outcome: Outcome) -> None:
        name, _, argument = (event.text or "").strip().lstrip("/").partition(" ")
        # "/help@hornerito_bot" in group chats
        name = name.split("@", 1)[0].lower()
        handler = self._commands.get(name)
        if handler is None:
            outcome.reply(replies.unknown_command())
            return
        await handler(event, session, argument.strip(), outcome)

    async def _on_start_command(self, event, session, argument, outcome) -> None:
        outcome.reply(replies.welcome(self.dashboard_url))

    async def _on_help_command(self, event, session, argument, outcome) -> None:
        outcome.reply(replies.help_message())

    async def _on_list_recurring_command(self, event, session, argument, outcome) -> None:
        await self._show_recurring(event.user_id, outcome)

    async def _on_stop_recurring_command(self, event, session, argument, outcome) -> None:
        recurring_id = _int_arg([argument]) if argument else None
        if recurring_id is None:
            outcome.reply(replies.stop_recurring_usage())
            return

        changed = await self._store(
            "deactivate recurring",
            self.services.recurring_expenses.deactivate,
            recurring_id,
            event.user_id,
        )
        if not changed:
            outcome.reply(replies.recurring_not_found())
            return

        logger.info(f"Deactivated recurring expense {recurring_id} for user {event.user_id}")
        outcome.reply(replies.recurring_removed())

    async def _on_cancel_command(self, event, session, argument, outcome) -> None:
        session.clear()
        outcome.reply(replies.cancelled())


def _int_arg(args: List[str]) -> Optional[int]:
    if not args:
        return None
    try:
        return int(args[0])
    except ValueError:
        return None


def _taxonomy_pick(args: List[str]) -> Optional[CategoryResult]:
    """Resolve "<main index>:<sub index>" button arguments."""
    if len(args) != 2:
        return None
    try:
        main_index, sub_index = int(args[0]), int(args[1])
    except ValueError:
        return None

    mains = taxonomy.main_categories()
    if not 0 <= main_index < len(mains):
        return None
    subs = taxonomy.subcategories(mains[main_index])
    if not 0 <= sub_index < len(subs):
        return None
    return CategoryResult(mains[main_index], subs[sub_index])


def _user_category(label: str) -> Optional[CategoryResult]:
    """Interpret a typed category label.

    "Main > Sub" is taken as given; a bare label is matched against the main
    categories ("bills" -> "Bills & Utilities") or kept as typed.
    """
    label = label.strip()
    if not label:
        return None
    if SEPARATOR in label:
        try:
            return CategoryResult.from_path(label)
        except ValueError:
            return None
    main = taxonomy.find_main_category(label)
    return CategoryResult(main or label)


def _alert_for(error: ChannelError) -> str:
    if error.kind == ChannelError.PERMISSION:
        return replies.ALERT_PERMISSION
    if error.kind == ChannelError.STALE:
        return replies.ALERT_STALE
    return replies.ALERT_GENERIC
