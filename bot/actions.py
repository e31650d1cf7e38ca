"""Button actions and their callback data encoding.

Callback data is "action[:arg[:arg]]" and must fit in Telegram's 64 bytes, so
buttons carry ids, indexes and tokens, never category names or descriptions.
"""

from typing import List, Tuple

SEPARATOR = ":"
MAX_CALLBACK_BYTES = 64

CANCEL = "cancel"
EDIT_AMOUNT = "edit"  # edit:<expense id>
EDIT_CATEGORY = "editcat"  # editcat:<expense id>
CATEGORY = "cat"  # cat:<main index>
SUBCATEGORY = "subcat"  # subcat:<main index>:<sub index>
DELETE = "delete"  # delete:<expense id>
DELETE_LAST = "delete_last"
RESTORE = "restore"  # restore:<undo token>
VIEW = "view"
STATS = "stats"
HELP = "help"
ADD_RECURRING = "add_rec"
REMOVE_RECURRING = "remove_rec"  # remove_rec[:<recurring id>]
CAT_CONFIRM = "cat_confirm"
CAT_CHANGE = "cat_change"
CAT_RESTART = "cat_restart"
USE_CATEGORY = "use_cat"  # use_cat:mine|suggested
FREQUENCY = "freq"  # freq:<daily|weekly|monthly>

USE_MINE = "mine"
USE_SUGGESTED = "suggested"


def encode(action: str, *args) -> str:
    """Build callback data for an action.

    Raises:
        ValueError: If the result does not fit in a callback payload.
    """
    data = SEPARATOR.join([action, *(str(arg) for arg in args)])
    if len(data.encode("utf-8")) > MAX_CALLBACK_BYTES:
        raise ValueError(f"Callback data too long ({len(data)} chars): {data!r}")
    return data


def decode(data: str) -> Tuple[str, List[str]]:
    """Split callback data into the action and its arguments."""
    parts = (data or "").split(SEPARATOR)
    return parts[0], parts[1:]
