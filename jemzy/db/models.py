"""SQLite schema. Timestamps are UTC strings in 'YYYY-MM-DD HH:MM:SS' form."""

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS users (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    telegram_id INTEGER UNIQUE,
    username TEXT,
    current_xp INTEGER NOT NULL DEFAULT 0 CHECK(current_xp >= 0),
    current_level INTEGER NOT NULL DEFAULT 0 CHECK(current_level >= 0),
    gem_coins INTEGER NOT NULL DEFAULT 0,
    lanterns INTEGER NOT NULL DEFAULT 0,
    created_at TEXT NOT NULL DEFAULT (datetime('now')),
    updated_at TEXT NOT NULL DEFAULT (datetime('now'))
);

CREATE TABLE IF NOT EXISTS videos (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id INTEGER NOT NULL,
    title TEXT NOT NULL,
    category TEXT NOT NULL,
    latitude REAL,
    longitude REAL,
    visibility TEXT NOT NULL DEFAULT 'everyone',
    is_active INTEGER NOT NULL DEFAULT 1,
    created_at TEXT NOT NULL DEFAULT (datetime('now')),
    FOREIGN KEY (user_id) REFERENCES users(id)
);

CREATE TABLE IF NOT EXISTS quests (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    creator_id INTEGER NOT NULL,
    title TEXT NOT NULL,
    description TEXT,
    latitude REAL NOT NULL,
    longitude REAL NOT NULL,
    radius_in_feet INTEGER NOT NULL CHECK(radius_in_feet > 0),
    required_participants INTEGER NOT NULL DEFAULT 1,
    reward_per_participant INTEGER NOT NULL DEFAULT 0,
    start_date TEXT NOT NULL DEFAULT (datetime('now')),
    end_date TEXT NOT NULL,
    status TEXT NOT NULL DEFAULT 'active',
    is_active INTEGER NOT NULL DEFAULT 1,
    created_at TEXT NOT NULL DEFAULT (datetime('now')),
    FOREIGN KEY (creator_id) REFERENCES users(id)
);

CREATE TABLE IF NOT EXISTS treasure_chests (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    latitude REAL NOT NULL,
    longitude REAL NOT NULL,
    coin_reward INTEGER NOT NULL,
    difficulty TEXT NOT NULL DEFAULT 'easy',
    spawned_at TEXT NOT NULL DEFAULT (datetime('now')),
    expires_at TEXT,
    is_active INTEGER NOT NULL DEFAULT 1,
    is_collected INTEGER DEFAULT 0,
    collected_by INTEGER,
    collected_at TEXT,
    FOREIGN KEY (collected_by) REFERENCES users(id)
);

CREATE TABLE IF NOT EXISTS mystery_boxes (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    latitude REAL NOT NULL,
    longitude REAL NOT NULL,
    coin_reward INTEGER NOT NULL,
    xp_reward INTEGER NOT NULL,
    lantern_reward INTEGER NOT NULL,
    rarity TEXT NOT NULL DEFAULT 'common',
    spawned_at TEXT NOT NULL DEFAULT (datetime('now')),
    expires_at TEXT,
    is_active INTEGER NOT NULL DEFAULT 1,
    is_collected INTEGER DEFAULT 0,
    collected_by INTEGER,
    collected_at TEXT,
    FOREIGN KEY (collected_by) REFERENCES users(id)
);

-- Dragon coordinates are stored as text
CREATE TABLE IF NOT EXISTS dragons (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    latitude TEXT NOT NULL,
    longitude TEXT NOT NULL,
    coin_reward INTEGER NOT NULL,
    total_health INTEGER NOT NULL,
    current_health INTEGER NOT NULL,
    radius_meters REAL NOT NULL DEFAULT 60.96,
    video_count INTEGER NOT NULL DEFAULT 0,
    spawned_at TEXT NOT NULL DEFAULT (datetime('now')),
    expires_at TEXT,
    is_active INTEGER NOT NULL DEFAULT 1,
    is_defeated INTEGER DEFAULT 0,
    defeated_at TEXT
);

CREATE TABLE IF NOT EXISTS dragon_attacks (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    dragon_id INTEGER NOT NULL,
    user_id INTEGER NOT NULL,
    video_id INTEGER NOT NULL,
    damage_dealt INTEGER NOT NULL DEFAULT 1,
    coins_earned INTEGER,
    created_at TEXT NOT NULL DEFAULT (datetime('now')),
    UNIQUE (dragon_id, user_id),
    FOREIGN KEY (dragon_id) REFERENCES dragons(id),
    FOREIGN KEY (user_id) REFERENCES users(id),
    FOREIGN KEY (video_id) REFERENCES videos(id)
);

CREATE INDEX IF NOT EXISTS idx_users_telegram_id ON users(telegram_id);
CREATE INDEX IF NOT EXISTS idx_videos_location ON videos(latitude, longitude);
CREATE INDEX IF NOT EXISTS idx_quests_location ON quests(latitude, longitude);
CREATE INDEX IF NOT EXISTS idx_chests_location ON treasure_chests(latitude, longitude);
CREATE INDEX IF NOT EXISTS idx_boxes_location ON mystery_boxes(latitude, longitude);
CREATE INDEX IF NOT EXISTS idx_dragons_expires ON dragons(expires_at);
"""
