"""Database triggers keeping denormalized counters and notifications in sync.

The triggers are attached to the ``after_create`` event of their tables, so
``Base.metadata.create_all`` installs them on PostgreSQL and SQLite alike and
the Alembic migration replays the PostgreSQL statements. Counter columns on
``questions`` and ``profiles`` are never written by the application itself.
"""

from __future__ import annotations

from collections.abc import Iterator

from sqlalchemy import DDL, Table, event

from ama_global.models.engagement import Follow
from ama_global.models.question import Answer, Question

# Reputation awarded to the author of an accepted answer.
ACCEPTED_ANSWER_REPUTATION = 15

_REP = ACCEPTED_ANSWER_REPUTATION

POSTGRES_FUNCTIONS: dict[str, str] = {
    "update_answer_count": """
CREATE OR REPLACE FUNCTION update_answer_count() RETURNS TRIGGER AS $$
BEGIN
  IF TG_OP = 'INSERT' THEN
    UPDATE questions SET answer_count = answer_count + 1, updated_at = now()
    WHERE id = NEW.question_id;
    UPDATE profiles SET answers_count = answers_count + 1 WHERE id = NEW.author_id;
    RETURN NEW;
  ELSIF TG_OP = 'DELETE' THEN
    UPDATE questions SET answer_count = answer_count - 1, updated_at = now()
    WHERE id = OLD.question_id;
    UPDATE profiles SET answers_count = answers_count - 1 WHERE id = OLD.author_id;
    RETURN OLD;
  END IF;
  RETURN NULL;
END;
$$ LANGUAGE plpgsql
""",
    "update_accepted_answer_count": f"""
CREATE OR REPLACE FUNCTION update_accepted_answer_count() RETURNS TRIGGER AS $$
BEGIN
  IF NEW.is_accepted AND NOT OLD.is_accepted THEN
    UPDATE profiles
    SET accepted_answers_count = accepted_answers_count + 1,
        reputation = reputation + {_REP}
    WHERE id = NEW.author_id;
    UPDATE questions SET is_answered = true WHERE id = NEW.question_id;
  ELSIF OLD.is_accepted AND NOT NEW.is_accepted THEN
    UPDATE profiles
    SET accepted_answers_count = accepted_answers_count - 1,
        reputation = reputation - {_REP}
    WHERE id = NEW.author_id;
    UPDATE questions
    SET is_answered = EXISTS (
      SELECT 1 FROM answers WHERE question_id = NEW.question_id AND is_accepted
    )
    WHERE id = NEW.question_id;
  END IF;
  RETURN NEW;
END;
$$ LANGUAGE plpgsql
""",
    "notify_new_answer": """
CREATE OR REPLACE FUNCTION notify_new_answer() RETURNS TRIGGER AS $$
BEGIN
  INSERT INTO notifications (id, user_id, type, title, message, data, is_read, created_at)
  SELECT gen_random_uuid()::text, q.author_id, 'new_answer', 'New answer',
         'Someone answered your question: ' || q.title,
         json_build_object('question_id', q.id, 'answer_id', NEW.id),
         false, now()
  FROM questions q
  WHERE q.id = NEW.question_id
    AND q.author_id IS NOT NULL
    AND (NEW.author_id IS NULL OR q.author_id <> NEW.author_id);
  RETURN NEW;
END;
$$ LANGUAGE plpgsql
""",
    "update_follow_counts": """
CREATE OR REPLACE FUNCTION update_follow_counts() RETURNS TRIGGER AS $$
BEGIN
  IF TG_OP = 'INSERT' THEN
    UPDATE profiles SET following_count = following_count + 1 WHERE id = NEW.follower_id;
    UPDATE profiles SET followers_count = followers_count + 1 WHERE id = NEW.following_id;
    INSERT INTO notifications (id, user_id, type, title, message, data, is_read, created_at)
    SELECT gen_random_uuid()::text, NEW.following_id, 'follow', 'New follower',
           p.username || ' started following you',
           json_build_object('follower_id', NEW.follower_id), false, now()
    FROM profiles p WHERE p.id = NEW.follower_id;
    RETURN NEW;
  ELSIF TG_OP = 'DELETE' THEN
    UPDATE profiles SET following_count = following_count - 1 WHERE id = OLD.follower_id;
    UPDATE profiles SET followers_count = followers_count - 1 WHERE id = OLD.following_id;
    RETURN OLD;
  END IF;
  RETURN NULL;
END;
$$ LANGUAGE plpgsql
""",
    "update_question_count": """
CREATE OR REPLACE FUNCTION update_question_count() RETURNS TRIGGER AS $$
BEGIN
  IF TG_OP = 'INSERT' THEN
    UPDATE profiles SET questions_count = questions_count + 1 WHERE id = NEW.author_id;
    RETURN NEW;
  ELSIF TG_OP = 'DELETE' THEN
    UPDATE profiles SET questions_count = questions_count - 1 WHERE id = OLD.author_id;
    RETURN OLD;
  END IF;
  RETURN NULL;
END;
$$ LANGUAGE plpgsql
""",
}

POSTGRES_TRIGGERS: dict[str, list[str]] = {
    "answers": [
        "CREATE TRIGGER trigger_update_answer_count AFTER INSERT OR DELETE ON answers "
        "FOR EACH ROW EXECUTE FUNCTION update_answer_count()",
        "CREATE TRIGGER trigger_update_accepted_answer_count AFTER UPDATE OF is_accepted "
        "ON answers FOR EACH ROW EXECUTE FUNCTION update_accepted_answer_count()",
        "CREATE TRIGGER trigger_notify_new_answer AFTER INSERT ON answers "
        "FOR EACH ROW EXECUTE FUNCTION notify_new_answer()",
    ],
    "follows": [
        "CREATE TRIGGER trigger_update_follow_counts AFTER INSERT OR DELETE ON follows "
        "FOR EACH ROW EXECUTE FUNCTION update_follow_counts()",
    ],
    "questions": [
        "CREATE TRIGGER trigger_update_question_count AFTER INSERT OR DELETE ON questions "
        "FOR EACH ROW EXECUTE FUNCTION update_question_count()",
    ],
}

SQLITE_TRIGGERS: dict[str, list[str]] = {
    "answers": [
        """
CREATE TRIGGER trigger_answer_inserted AFTER INSERT ON answers
FOR EACH ROW BEGIN
  UPDATE questions SET answer_count = answer_count + 1 WHERE id = NEW.question_id;
  UPDATE profiles SET answers_count = answers_count + 1 WHERE id = NEW.author_id;
  INSERT INTO notifications (id, user_id, type, title, message, data, is_read, created_at)
  SELECT lower(hex(randomblob(16))), q.author_id, 'new_answer', 'New answer',
         'Someone answered your question: ' || q.title,
         json_object('question_id', q.id, 'answer_id', NEW.id), 0, CURRENT_TIMESTAMP
  FROM questions q
  WHERE q.id = NEW.question_id
    AND q.author_id IS NOT NULL
    AND (NEW.author_id IS NULL OR q.author_id <> NEW.author_id);
END
""",
        """
CREATE TRIGGER trigger_answer_deleted AFTER DELETE ON answers
FOR EACH ROW BEGIN
  UPDATE questions SET answer_count = answer_count - 1 WHERE id = OLD.question_id;
  UPDATE profiles SET answers_count = answers_count - 1 WHERE id = OLD.author_id;
END
""",
        f"""
CREATE TRIGGER trigger_answer_accepted AFTER UPDATE OF is_accepted ON answers
FOR EACH ROW WHEN NEW.is_accepted = 1 AND OLD.is_accepted = 0 BEGIN
  UPDATE profiles
  SET accepted_answers_count = accepted_answers_count + 1, reputation = reputation + {_REP}
  WHERE id = NEW.author_id;
  UPDATE questions SET is_answered = 1 WHERE id = NEW.question_id;
END
""",
        f"""
CREATE TRIGGER trigger_answer_unaccepted AFTER UPDATE OF is_accepted ON answers
FOR EACH ROW WHEN NEW.is_accepted = 0 AND OLD.is_accepted = 1 BEGIN
  UPDATE profiles
  SET accepted_answers_count = accepted_answers_count - 1, reputation = reputation - {_REP}
  WHERE id = NEW.author_id;
  UPDATE questions
  SET is_answered = EXISTS (
    SELECT 1 FROM answers WHERE question_id = NEW.question_id AND is_accepted = 1
  )
  WHERE id = NEW.question_id;
END
""",
    ],
    "follows": [
        """
CREATE TRIGGER trigger_follow_inserted AFTER INSERT ON follows
FOR EACH ROW BEGIN
  UPDATE profiles SET following_count = following_count + 1 WHERE id = NEW.follower_id;
  UPDATE profiles SET followers_count = followers_count + 1 WHERE id = NEW.following_id;
  INSERT INTO notifications (id, user_id, type, title, message, data, is_read, created_at)
  SELECT lower(hex(randomblob(16))), NEW.following_id, 'follow', 'New follower',
         p.username || ' started following you',
         json_object('follower_id', NEW.follower_id), 0, CURRENT_TIMESTAMP
  FROM profiles p WHERE p.id = NEW.follower_id;
END
""",
        """
CREATE TRIGGER trigger_follow_deleted AFTER DELETE ON follows
FOR EACH ROW BEGIN
  UPDATE profiles SET following_count = following_count - 1 WHERE id = OLD.follower_id;
  UPDATE profiles SET followers_count = followers_count - 1 WHERE id = OLD.following_id;
END
""",
    ],
    "questions": [
        """
CREATE TRIGGER trigger_question_inserted AFTER INSERT ON questions
FOR EACH ROW BEGIN
  UPDATE profiles SET questions_count = questions_count + 1 WHERE id = NEW.author_id;
END
""",
        """
CREATE TRIGGER trigger_question_deleted AFTER DELETE ON questions
FOR EACH ROW BEGIN
  UPDATE profiles SET questions_count = questions_count - 1 WHERE id = OLD.author_id;
END
""",
    ],
}

_FUNCTIONS_BY_TABLE: dict[str, list[str]] = {
    "answers": ["update_answer_count", "update_accepted_answer_count", "notify_new_answer"],
    "follows": ["update_follow_counts"],
    "questions": ["update_question_count"],
}


def iter_postgres_ddl() -> Iterator[str]:
    """Yield every PostgreSQL statement needed to install the triggers."""
    for table_name, function_names in _FUNCTIONS_BY_TABLE.items():
        for name in function_names:
            yield POSTGRES_FUNCTIONS[name].strip()
        yield from POSTGRES_TRIGGERS[table_name]


def _attach(table: Table) -> None:
    for name in _FUNCTIONS_BY_TABLE[table.name]:
        event.listen(
            table,
            "after_create",
            DDL(POSTGRES_FUNCTIONS[name].strip()).execute_if(dialect="postgresql"),
        )
    for statement in POSTGRES_TRIGGERS[table.name]:
        event.listen(table, "after_create", DDL(statement).execute_if(dialect="postgresql"))
    for statement in SQLITE_TRIGGERS[table.name]:
        event.listen(table, "after_create", DDL(statement.strip()).execute_if(dialect="sqlite"))


for _table in (Question.__table__, Answer.__table__, Follow.__table__):
    _attach(_table)  # type: ignore[arg-type]
