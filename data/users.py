"""
User profile and activity data for the shopping assistant.
"""
import logging
import json
import os
from datetime import date, datetime, timezone
from typing import Callable, Dict, Any, List, Optional

import sqlalchemy as sa
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from config import DB_CONFIG
from utils.errors import PersonalizationWriteFailure

logger = logging.getLogger(__name__)

ACTIVITY_KINDS = ("like", "cart", "purchase")

class UserDataManager:
    """Manager for user profiles, search history and activity lists."""

    def __init__(self, data_file: Optional[str] = None, connection_string: Optional[str] = None):
        """
        Initialize the user data manager.

        Args:
            data_file: Path to user data file (used only for file-based storage)
            connection_string: SQLAlchemy URL; enables database storage when set
        """
        self.data_file = data_file
        self._profiles: Dict[str, Dict[str, Any]] = {}
        self._searches: List[Dict[str, Any]] = []
        self._activity: List[Dict[str, Any]] = []

        if connection_string:
            self._use_db = True
            self._init_db_connection(connection_string)
            logger.info("Using database for user data management")
        else:
            self._use_db = False
            self._load_users()
            logger.info("Using file-based storage for user data management")

    @classmethod
    def from_config(cls) -> "UserDataManager":
        if DB_CONFIG["use_database"]:
            return cls(connection_string=DB_CONFIG["connection_string"])
        return cls(data_file=DB_CONFIG["users_file"])

    def _init_db_connection(self, connection_string: str):
        """Initialize database connection and tables."""
        engine = sa.create_engine(connection_string)
        metadata = sa.MetaData()

        self.profiles_table = sa.Table(
            'profiles', metadata,
            sa.Column('id', sa.String(36), primary_key=True),
            sa.Column('first_name', sa.String(100)),
            sa.Column('last_name', sa.String(100)),
            sa.Column('date_of_birth', sa.Date),
            sa.Column('gender', sa.String(50)),
            sa.Column('preferences', sa.JSON, nullable=False, default=dict)
        )

        self.searches_table = sa.Table(
            'user_searches', metadata,
            sa.Column('id', sa.Integer, primary_key=True, autoincrement=True),
            sa.Column('user_id', sa.String(36), nullable=False, index=True),
            sa.Column('search_query', sa.Text, nullable=False),
            sa.Column('search_category', sa.String(100), nullable=False),
            sa.Column('created_at', sa.DateTime, server_default=sa.func.now())
        )

        self.activity_table = sa.Table(
            'user_activity', metadata,
            sa.Column('id', sa.Integer, primary_key=True, autoincrement=True),
            sa.Column('user_id', sa.String(36), nullable=False, index=True),
            sa.Column('kind', sa.String(20), nullable=False),
            sa.Column('product_name', sa.String(255), nullable=False),
            sa.Column('created_at', sa.DateTime, server_default=sa.func.now())
        )

        metadata.create_all(engine)
        self.Session = sessionmaker(bind=engine)
        logger.info("Database connection initialized")

    def _load_users(self):
        """Load users from data file (used only for file-based storage)."""
        if not self.data_file:
            return

        try:
            if os.path.exists(self.data_file):
                with open(self.data_file, 'r') as f:
                    data = json.load(f)
                self._profiles = data.get("profiles", {})
                self._searches = data.get("searches", [])
                self._activity = data.get("activity", [])
                logger.info(f"Loaded {len(self._profiles)} users from {self.data_file}")
            else:
                logger.warning(f"User data file not found: {self.data_file}")
        except Exception as e:
            logger.error(f"Error loading users: {str(e)}")
            self._profiles = {}

    def _save_users(self):
        """Save users to data file (used only for file-based storage)."""
        if self._use_db or not self.data_file:
            return

        try:
            directory = os.path.dirname(self.data_file)
            if directory:
                os.makedirs(directory, exist_ok=True)
            with open(self.data_file, 'w') as f:
                json.dump({
                    "profiles": self._profiles,
                    "searches": self._searches,
                    "activity": self._activity
                }, f, indent=2, default=str)
        except OSError as e:
            raise PersonalizationWriteFailure(f"Error saving users: {str(e)}") from e

    def _persist(self, rollback: Callable[[], Any]):
        """Save the data file, undoing the in-memory change when the write fails."""
        try:
            self._save_users()
        except PersonalizationWriteFailure:
            rollback()
            raise

    def _restore_profile(self, user_id: str, previous: Optional[Dict[str, Any]]):
        if previous is None:
            self._profiles.pop(user_id, None)
        else:
            self._profiles[user_id] = previous

    def upsert_profile(self, user_id: str, profile: Dict[str, Any]):
        """
        Create or replace a user profile.

        Args:
            user_id: The user identifier
            profile: first_name, last_name, date_of_birth (ISO date), gender, preferences
        """
        record = {
            "first_name": profile.get("first_name"),
            "last_name": profile.get("last_name"),
            "date_of_birth": _parse_date(profile.get("date_of_birth")),
            "gender": profile.get("gender"),
            "preferences": profile.get("preferences") or {}
        }

        if self._use_db:
            self._write(
                sa.delete(self.profiles_table).where(self.profiles_table.c.id == user_id),
                sa.insert(self.profiles_table).values(id=user_id, **record)
            )
        else:
            record["date_of_birth"] = record["date_of_birth"].isoformat() if record["date_of_birth"] else None
            previous = self._profiles.get(user_id)
            self._profiles[user_id] = record
            self._persist(lambda: self._restore_profile(user_id, previous))

        logger.info(f"Saved profile for user: {user_id}")

    def get_profile(self, user_id: str) -> Optional[Dict[str, Any]]:
        """
        Get a user profile.

        Returns:
            Profile dict with date_of_birth as a date, or None if not found
        """
        if self._use_db:
            with self.Session() as session:
                row = session.execute(
                    sa.select(self.profiles_table).where(self.profiles_table.c.id == user_id)
                ).first()
            if not row:
                return None
            profile = dict(row._mapping)
        else:
            if user_id not in self._profiles:
                return None
            profile = {"id": user_id, **self._profiles[user_id]}
            profile["date_of_birth"] = _parse_date(profile.get("date_of_birth"))

        profile["preferences"] = profile.get("preferences") or {}
        return profile

    def get_preferences(self, user_id: str) -> Dict[str, Any]:
        profile = self.get_profile(user_id)
        return dict(profile["preferences"]) if profile else {}

    def update_preferences(self, user_id: str, preferences: Dict[str, Any]):
        """
        Replace the preferences document of a user.

        Raises:
            PersonalizationWriteFailure: The document could not be written
        """
        if self._use_db:
            table = self.profiles_table
            exists = self.get_profile(user_id) is not None
            if exists:
                statement = sa.update(table).where(table.c.id == user_id).values(preferences=preferences)
            else:
                statement = sa.insert(table).values(id=user_id, preferences=preferences)
            self._write(statement)
        else:
            previous = self._profiles.get(user_id)
            self._profiles[user_id] = {**(previous or {}), "preferences": preferences}
            self._persist(lambda: self._restore_profile(user_id, previous))

        logger.debug(f"Updated preferences for user: {user_id}")

    def add_search_record(self, user_id: str, search_query: str, search_category: str):
        """
        Append one search history record.

        Raises:
            PersonalizationWriteFailure: The record could not be written
        """
        if self._use_db:
            self._write(sa.insert(self.searches_table).values(
                user_id=user_id,
                search_query=search_query,
                search_category=search_category
            ))
        else:
            self._searches.append({
                "user_id": user_id,
                "search_query": search_query,
                "search_category": search_category,
                "created_at": datetime.now(timezone.utc).isoformat()
            })
            self._persist(self._searches.pop)

    def record_activity(self, user_id: str, kind: str, product_name: str):
        """Record a liked, carted or purchased product."""
        if kind not in ACTIVITY_KINDS:
            raise ValueError(f"Unknown activity kind: {kind}")

        if self._use_db:
            self._write(sa.insert(self.activity_table).values(
                user_id=user_id, kind=kind, product_name=product_name
            ))
        else:
            self._activity.append({
                "user_id": user_id,
                "kind": kind,
                "product_name": product_name,
                "created_at": datetime.now(timezone.utc).isoformat()
            })
            self._persist(self._activity.pop)

    def get_recent_searches(self, user_id: str, limit: int = 10) -> List[str]:
        """Most recent search queries first."""
        if self._use_db:
            table = self.searches_table
            with self.Session() as session:
                rows = session.execute(
                    sa.select(table.c.search_query)
                    .where(table.c.user_id == user_id)
                    .order_by(table.c.id.desc())
                    .limit(limit)
                ).all()
            return [row.search_query for row in rows]

        records = [r for r in self._searches if r["user_id"] == user_id]
        return [r["search_query"] for r in reversed(records)][:limit]

    def get_recent_activity(self, user_id: str, kind: str, limit: int = 10) -> List[str]:
        """Most recent product names of one activity kind first."""
        if self._use_db:
            table = self.activity_table
            with self.Session() as session:
                rows = session.execute(
                    sa.select(table.c.product_name)
                    .where(sa.and_(table.c.user_id == user_id, table.c.kind == kind))
                    .order_by(table.c.id.desc())
                    .limit(limit)
                ).all()
            return [row.product_name for row in rows]

        records = [r for r in self._activity if r["user_id"] == user_id and r["kind"] == kind]
        return [r["product_name"] for r in reversed(records)][:limit]

    def _write(self, *statements):
        try:
            with self.Session() as session:
                for statement in statements:
                    session.execute(statement)
                session.commit()
        except SQLAlchemyError as e:
            logger.error(f"Database write failed: {str(e)}")
            raise PersonalizationWriteFailure(str(e)) from e

def _parse_date(value) -> Optional[date]:
    if value is None or isinstance(value, date):
        return value
    return date.fromisoformat(str(value)[:10])
