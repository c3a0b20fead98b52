#samlogin/memory/persistence.py
"""To keep the signature table honest, the
persistence.py module uses SQLite to journal every login-window signature the classifier reads, together with the state it resolved to. When the client ships a new login layout it shows up here as a signature that keeps resolving to Invalid, with its label texts, which is exactly what is needed to add a new rule."""
import json
import os
import sqlite3

from samlogin.states import ElementSignature, LoginWindowState


class SignatureMemory:
    def __init__(self, db_path="data/signatures.db"):
        self.db_path = db_path
        directory = os.path.dirname(db_path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        self._init_db()

    def _init_db(self):
        """Initializes the SQLite schema for the signature journal."""
        with sqlite3.connect(self.db_path) as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS signatures (
                    fingerprint TEXT PRIMARY KEY,
                    inputs INTEGER,
                    buttons INTEGER,
                    groups_ INTEGER,
                    images INTEGER,
                    texts TEXT,
                    state TEXT,
                    hits INTEGER DEFAULT 1,
                    last_seen TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                )
            """)
            conn.commit()

    def remember(self, signature, state):
        """
        Records one classification. Seeing the same signature again bumps its
        hit count and refreshes the resolved state.
        """
        with sqlite3.connect(self.db_path) as conn:
            conn.execute("""
                INSERT INTO signatures (fingerprint, inputs, buttons, groups_, images, texts, state)
                VALUES (?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(fingerprint) DO UPDATE SET
                    state = excluded.state,
                    hits = hits + 1,
                    last_seen = CURRENT_TIMESTAMP
            """, (signature.fingerprint, signature.inputs, signature.buttons,
                  signature.groups, signature.images,
                  json.dumps(list(signature.texts), ensure_ascii=False), state.value))
            conn.commit()

    def recall(self, fingerprint):
        """
        Returns (signature, state, hits) for a fingerprint, or None.
        """
        with sqlite3.connect(self.db_path) as conn:
            row = conn.execute(
                "SELECT inputs, buttons, groups_, images, texts, state, hits "
                "FROM signatures WHERE fingerprint = ?",
                (fingerprint,)
            ).fetchone()

        if row is None:
            return None
        return self._row_to_entry(row)

    def unknown_signatures(self):
        """Signatures that matched no rule, most frequent first."""
        with sqlite3.connect(self.db_path) as conn:
            rows = conn.execute(
                "SELECT inputs, buttons, groups_, images, texts, state, hits "
                "FROM signatures WHERE state = ? ORDER BY hits DESC",
                (LoginWindowState.INVALID.value,)
            ).fetchall()
        return [self._row_to_entry(row)[0] for row in rows]

    def forget(self, fingerprint):
        """Drop a signature once a rule has been written for it."""
        with sqlite3.connect(self.db_path) as conn:
            conn.execute("DELETE FROM signatures WHERE fingerprint = ?", (fingerprint,))
            conn.commit()

    @staticmethod
    def _row_to_entry(row):
        inputs, buttons, groups, images, texts, state, hits = row
        signature = ElementSignature(inputs=inputs, buttons=buttons, groups=groups,
                                     images=images, texts=tuple(json.loads(texts)))
        return signature, LoginWindowState(state), hits
