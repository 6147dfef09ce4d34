"""Per-conversation message table naming."""

import hashlib

MESSAGE_TABLE_PREFIX = "Msg_"


def message_table_name(conversation_id: str) -> str:
    """Return the message table holding ``conversation_id``'s messages.

    The name is ``Msg_`` followed by the lowercase hex MD5 digest of the id.
    """
    digest = hashlib.md5(conversation_id.encode("utf-8")).hexdigest()
    return MESSAGE_TABLE_PREFIX + digest
