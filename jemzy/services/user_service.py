"""User rows and the progression state they carry."""
from jemzy.db.base import fetch_one, execute_write, execute_write_returning
from jemzy.errors import NotFound


async def create_user(username: str | None = None, telegram_id: int | None = None) -> int:
    """Insert a user with current_xp = 0 and current_level = 0. Returns user id."""
    return await execute_write_returning(
        "INSERT INTO users (username, telegram_id) VALUES (?, ?)",
        (username, telegram_id),
    )


async def get_user(user_id: int) -> dict:
    user = await fetch_one("SELECT * FROM users WHERE id = ?", (user_id,))
    if not user:
        raise NotFound(f"user {user_id} not found")
    return user


async def get_user_by_telegram(telegram_id: int) -> dict | None:
    return await fetch_one("SELECT * FROM users WHERE telegram_id = ?", (telegram_id,))


async def upsert_telegram_user(telegram_id: int, username: str | None = None) -> dict:
    """Insert or refresh the user behind a Telegram account."""
    await execute_write("""
    INSERT INTO users (telegram_id, username)
    VALUES (?, ?)
    ON CONFLICT(telegram_id) DO UPDATE SET
        username = COALESCE(excluded.username, users.username)
    """, (telegram_id, username))
    return await get_user_by_telegram(telegram_id)
