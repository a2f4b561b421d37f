"""
Schema bootstrap. One DDL list rendered for the connected dialect
(MySQL in production, SQLite for development and tests).

Statements that fail because the object already exists (ER_TABLE_EXISTS_ERROR,
ER_DUP_KEYNAME, ER_DUP_FIELDNAME) are skipped, so ``ensure_schema`` can run on
every start.
"""
from __future__ import annotations

import logging

from sqlalchemy.engine import Connection
from sqlalchemy.exc import DBAPIError

from .db import execute, get_conn
from .errors import db_error_code

logger = logging.getLogger(__name__)

_TOKENS = {
    "mysql": {
        "pk": "INT AUTO_INCREMENT PRIMARY KEY",
        "ts": "DATETIME",
        "bool": "TINYINT(1)",
        "longtext": "MEDIUMTEXT",
        "money": "DECIMAL(15,2)",
        "suffix": " ENGINE=InnoDB DEFAULT CHARSET=utf8mb4",
    },
    "sqlite": {
        "pk": "INTEGER PRIMARY KEY AUTOINCREMENT",
        "ts": "TEXT",
        "bool": "INTEGER",
        "longtext": "TEXT",
        "money": "NUMERIC",
        "suffix": "",
    },
}

TABLES = [
    ("users", """
CREATE TABLE users (
  id {pk},
  uuid VARCHAR(36) UNIQUE,
  name VARCHAR(255) NOT NULL,
  email VARCHAR(255) NOT NULL UNIQUE,
  password_hash VARCHAR(255),
  phone VARCHAR(50),
  avatar_url VARCHAR(500),
  title VARCHAR(50),
  occupation VARCHAR(255),
  state VARCHAR(100),
  country VARCHAR(100),
  is_active {bool} DEFAULT 1,
  last_login {ts} NULL,
  created_at {ts} DEFAULT CURRENT_TIMESTAMP,
  updated_at {ts} DEFAULT CURRENT_TIMESTAMP
){suffix}"""),
    ("admin_users", """
CREATE TABLE admin_users (
  id {pk},
  username VARCHAR(100) NOT NULL UNIQUE,
  password_hash VARCHAR(255) NOT NULL,
  email VARCHAR(255),
  full_name VARCHAR(255),
  role VARCHAR(50) DEFAULT 'admin',
  is_active {bool} DEFAULT 1,
  last_login {ts} NULL,
  created_at {ts} DEFAULT CURRENT_TIMESTAMP
){suffix}"""),
    ("businesses", """
CREATE TABLE businesses (
  id {pk},
  user_id INT NOT NULL,
  business_name VARCHAR(255) NOT NULL,
  business_address TEXT,
  business_sector VARCHAR(255),
  year_of_formation INT,
  number_of_employees VARCHAR(50),
  cac_registered {bool} DEFAULT 0,
  cac_certificate_url VARCHAR(500),
  has_business_bank_account {bool} DEFAULT 0,
  bank_name VARCHAR(255),
  account_number VARCHAR(50),
  account_name VARCHAR(255),
  owner_name VARCHAR(255),
  owner_relationship VARCHAR(100),
  newsletter_optin {bool} DEFAULT 0,
  status VARCHAR(50) DEFAULT 'Pending Review',
  registered_date DATE,
  created_at {ts} DEFAULT CURRENT_TIMESTAMP,
  updated_at {ts} DEFAULT CURRENT_TIMESTAMP,
  FOREIGN KEY (user_id) REFERENCES users(id) ON DELETE CASCADE
){suffix}"""),
    ("events", """
CREATE TABLE events (
  id {pk},
  title VARCHAR(255) NOT NULL,
  description TEXT,
  event_date DATE,
  event_time VARCHAR(20),
  date_display VARCHAR(100),
  event_type VARCHAR(20) DEFAULT 'regular',
  status VARCHAR(20) DEFAULT 'Upcoming',
  flier_url {longtext},
  social_links TEXT,
  is_archived {bool} DEFAULT 0,
  created_by INT NULL,
  created_at {ts} DEFAULT CURRENT_TIMESTAMP,
  updated_at {ts} DEFAULT CURRENT_TIMESTAMP,
  FOREIGN KEY (created_by) REFERENCES admin_users(id) ON DELETE SET NULL
){suffix}"""),
    ("event_rsvps", """
CREATE TABLE event_rsvps (
  id {pk},
  event_id INT NOT NULL,
  user_id INT NOT NULL,
  rsvp_date {ts} DEFAULT CURRENT_TIMESTAMP,
  UNIQUE (event_id, user_id),
  FOREIGN KEY (event_id) REFERENCES events(id) ON DELETE CASCADE,
  FOREIGN KEY (user_id) REFERENCES users(id) ON DELETE CASCADE
){suffix}"""),
    ("pitch_entries", """
CREATE TABLE pitch_entries (
  id {pk},
  event_id INT NULL,
  business_name VARCHAR(255) NOT NULL,
  founder_name VARCHAR(255),
  funding_amount {money} DEFAULT 0,
  status VARCHAR(50) DEFAULT 'Committed',
  created_at {ts} DEFAULT CURRENT_TIMESTAMP,
  FOREIGN KEY (event_id) REFERENCES events(id) ON DELETE SET NULL
){suffix}"""),
    ("blog_posts", """
CREATE TABLE blog_posts (
  id {pk},
  title VARCHAR(255) NOT NULL,
  content {longtext},
  excerpt TEXT,
  author VARCHAR(255),
  category VARCHAR(100),
  featured_image_url VARCHAR(500),
  tags VARCHAR(500),
  published_date DATE,
  is_published {bool} DEFAULT 1,
  view_count INT DEFAULT 0,
  created_by INT NULL,
  created_at {ts} DEFAULT CURRENT_TIMESTAMP,
  updated_at {ts} DEFAULT CURRENT_TIMESTAMP,
  FOREIGN KEY (created_by) REFERENCES admin_users(id) ON DELETE SET NULL
){suffix}"""),
    ("saved_blog_posts", """
CREATE TABLE saved_blog_posts (
  id {pk},
  user_id INT NOT NULL,
  blog_post_id INT NOT NULL,
  saved_at {ts} DEFAULT CURRENT_TIMESTAMP,
  UNIQUE (user_id, blog_post_id),
  FOREIGN KEY (user_id) REFERENCES users(id) ON DELETE CASCADE,
  FOREIGN KEY (blog_post_id) REFERENCES blog_posts(id) ON DELETE CASCADE
){suffix}"""),
    ("directory_members", """
CREATE TABLE directory_members (
  id {pk},
  name VARCHAR(255) NOT NULL,
  title VARCHAR(255),
  organization VARCHAR(255),
  website VARCHAR(500),
  linkedin_url VARCHAR(500),
  twitter_url VARCHAR(500),
  facebook_url VARCHAR(500),
  instagram_url VARCHAR(500),
  tiktok_url VARCHAR(500),
  threads_url VARCHAR(500),
  youtube_url VARCHAR(500),
  reddit_url VARCHAR(500),
  avatar_url VARCHAR(500),
  added_by INT NULL,
  added_date {ts} DEFAULT CURRENT_TIMESTAMP,
  updated_at {ts} DEFAULT CURRENT_TIMESTAMP
){suffix}"""),
    ("directory_partners", """
CREATE TABLE directory_partners (
  id {pk},
  partner_name VARCHAR(255) NOT NULL,
  address TEXT,
  email VARCHAR(255),
  phone VARCHAR(50),
  website VARCHAR(500),
  added_by INT NULL,
  added_date {ts} DEFAULT CURRENT_TIMESTAMP,
  updated_at {ts} DEFAULT CURRENT_TIMESTAMP
){suffix}"""),
    ("directory_businesses", """
CREATE TABLE directory_businesses (
  id {pk},
  business_name VARCHAR(255) NOT NULL,
  address TEXT,
  email VARCHAR(255),
  phone VARCHAR(50),
  website VARCHAR(500),
  added_by INT NULL,
  added_date {ts} DEFAULT CURRENT_TIMESTAMP,
  updated_at {ts} DEFAULT CURRENT_TIMESTAMP
){suffix}"""),
    ("settings", """
CREATE TABLE settings (
  id {pk},
  setting_key VARCHAR(100) NOT NULL UNIQUE,
  setting_value TEXT,
  setting_type VARCHAR(20) DEFAULT 'string',
  description VARCHAR(255),
  updated_by INT NULL,
  updated_at {ts} DEFAULT CURRENT_TIMESTAMP
){suffix}"""),
    ("custom_tools", """
CREATE TABLE custom_tools (
  id {pk},
  name VARCHAR(255) NOT NULL,
  description TEXT,
  inputs TEXT,
  function_code TEXT,
  result_label VARCHAR(255),
  result_id VARCHAR(100),
  button_text VARCHAR(100),
  button_color VARCHAR(50),
  show_conversion {bool} DEFAULT 0,
  created_at {ts} DEFAULT CURRENT_TIMESTAMP
){suffix}"""),
    ("builtin_tools", """
CREATE TABLE builtin_tools (
  id {pk},
  tool_id VARCHAR(100) NOT NULL UNIQUE,
  name VARCHAR(255) NOT NULL,
  description TEXT,
  category VARCHAR(100),
  is_active {bool} DEFAULT 1,
  is_visible {bool} DEFAULT 1,
  display_order INT DEFAULT 0
){suffix}"""),
    ("templates", """
CREATE TABLE templates (
  id {pk},
  template_id VARCHAR(100) NOT NULL UNIQUE,
  name VARCHAR(255) NOT NULL,
  description TEXT,
  category VARCHAR(100),
  file_path VARCHAR(500),
  is_active {bool} DEFAULT 1,
  created_at {ts} DEFAULT CURRENT_TIMESTAMP,
  updated_at {ts} DEFAULT CURRENT_TIMESTAMP
){suffix}"""),
    ("template_downloads", """
CREATE TABLE template_downloads (
  id {pk},
  template_id VARCHAR(100) NOT NULL,
  user_id INT NULL,
  downloaded_at {ts} DEFAULT CURRENT_TIMESTAMP,
  ip_address VARCHAR(64),
  user_agent VARCHAR(500),
  FOREIGN KEY (template_id) REFERENCES templates(template_id) ON DELETE CASCADE,
  FOREIGN KEY (user_id) REFERENCES users(id) ON DELETE SET NULL
){suffix}"""),
    ("newsletter_subscribers", """
CREATE TABLE newsletter_subscribers (
  id {pk},
  email VARCHAR(255) NOT NULL UNIQUE,
  subscribed_at {ts} DEFAULT CURRENT_TIMESTAMP,
  is_active {bool} DEFAULT 1,
  unsubscribed_at {ts} NULL,
  source VARCHAR(50) DEFAULT 'homepage'
){suffix}"""),
    ("password_reset_tokens", """
CREATE TABLE password_reset_tokens (
  id {pk},
  user_id INT NOT NULL,
  token VARCHAR(255) NOT NULL UNIQUE,
  expires_at {ts} NOT NULL,
  used {bool} DEFAULT 0,
  created_at {ts} DEFAULT CURRENT_TIMESTAMP,
  FOREIGN KEY (user_id) REFERENCES users(id) ON DELETE CASCADE
){suffix}"""),
    ("operation_log", """
CREATE TABLE operation_log (
  id {pk},
  ts VARCHAR(40) NOT NULL,
  user VARCHAR(100) NOT NULL,
  action VARCHAR(100) NOT NULL,
  entity_type VARCHAR(50),
  entity_id VARCHAR(100),
  request_id VARCHAR(64),
  before_json {longtext},
  after_json {longtext},
  payload_json {longtext},
  result VARCHAR(20),
  err_msg TEXT,
  latency_ms INT
){suffix}"""),
]

INDEXES = [
    "CREATE INDEX idx_businesses_status ON businesses(status)",
    "CREATE INDEX idx_events_date ON events(event_date)",
    "CREATE INDEX idx_events_status ON events(status)",
    "CREATE INDEX idx_blog_category ON blog_posts(category)",
    "CREATE INDEX idx_blog_published ON blog_posts(published_date)",
    "CREATE INDEX idx_downloads_template ON template_downloads(template_id)",
    "CREATE INDEX idx_log_ts ON operation_log(ts)",
    "CREATE INDEX idx_log_action ON operation_log(action)",
]

# Columns added after the first production deploy; no-ops on a fresh schema.
COLUMN_UPGRADES = [
    ("users", "uuid", "VARCHAR(36)"),
    ("users", "title", "VARCHAR(50)"),
    ("users", "occupation", "VARCHAR(255)"),
    ("users", "state", "VARCHAR(100)"),
    ("users", "country", "VARCHAR(100)"),
    ("events", "is_archived", "{bool} DEFAULT 0"),
    ("events", "event_type", "VARCHAR(20) DEFAULT 'regular'"),
    ("blog_posts", "view_count", "INT DEFAULT 0"),
    ("directory_members", "tiktok_url", "VARCHAR(500)"),
    ("directory_members", "threads_url", "VARCHAR(500)"),
    ("directory_members", "youtube_url", "VARCHAR(500)"),
    ("directory_members", "reddit_url", "VARCHAR(500)"),
]

_ALREADY_THERE = {"ER_TABLE_EXISTS_ERROR", "ER_DUP_KEYNAME", "ER_DUP_FIELDNAME"}


def render(ddl: str, dialect: str) -> str:
    return ddl.format(**_TOKENS.get(dialect, _TOKENS["sqlite"]))


def _try(conn: Connection, sql: str) -> bool:
    """Run one DDL statement; False when the object already exists."""
    try:
        execute(conn, sql)
        conn.commit()
        return True
    except DBAPIError as e:
        conn.rollback()
        if db_error_code(e) in _ALREADY_THERE:
            return False
        raise


def ensure_schema(conn: Connection | None = None) -> dict:
    """Create missing tables, indexes and columns. Returns what was created."""
    if conn is None:
        with get_conn() as c:
            return ensure_schema(c)
    dialect = conn.dialect.name
    created = {"tables": [], "indexes": [], "columns": []}
    for name, ddl in TABLES:
        if _try(conn, render(ddl, dialect)):
            created["tables"].append(name)
    for sql in INDEXES:
        if _try(conn, sql):
            created["indexes"].append(sql.split()[2])
    for table, column, coltype in COLUMN_UPGRADES:
        sql = f"ALTER TABLE {table} ADD COLUMN {column} {render(coltype, dialect)}"
        if _try(conn, sql):
            created["columns"].append(f"{table}.{column}")
    if created["tables"]:
        logger.info("created tables: %s", ", ".join(created["tables"]))
    return created
