import sqlite3
from typing import Optional, Dict, Any, List
import logging

logger = logging.getLogger(__name__)

# [ art_id, title, email, article, posted, image_url ]
INSERT_NEW_ARTICLE = '''
    INSERT INTO articles (art_id, title, email, article, posted, image_url)
    VALUES (?, ?, ?, ?, ?, ?)
'''


def init_db(db_path: str = "articles.db") -> None:
    """Initialize database with the articles table."""
    conn = None
    try:
        conn = sqlite3.connect(db_path)
        cursor = conn.cursor()

        cursor.execute('''
            CREATE TABLE IF NOT EXISTS articles (
                art_id CHAR(8) PRIMARY KEY,
                title VARCHAR(256) NOT NULL,
                email VARCHAR(256) NOT NULL,
                article TEXT NOT NULL,
                posted TIMESTAMP NOT NULL,
                image_url VARCHAR(256) NOT NULL
            )
        ''')

        conn.commit()
        logger.info(f"Articles table ready in database: {db_path}")
    finally:
        if conn:
            conn.close()


def get_article(conn: sqlite3.Connection, art_id: str) -> Optional[Dict[str, Any]]:
    """Retrieve one article row by id."""
    cursor = conn.execute('SELECT * FROM articles WHERE art_id = ?', (art_id,))
    row = cursor.fetchone()
    if row:
        return dict(row)
    return None


def list_articles(conn: sqlite3.Connection, limit: int = 100) -> List[Dict[str, Any]]:
    """Retrieve article rows, newest first."""
    cursor = conn.execute(
        'SELECT * FROM articles ORDER BY posted DESC LIMIT ?',
        (limit,)
    )
    return [dict(row) for row in cursor.fetchall()]


def count_articles(conn: sqlite3.Connection) -> int:
    cursor = conn.execute('SELECT COUNT(*) FROM articles')
    return cursor.fetchone()[0]
