import sqlite3

import pytest

from common.errors import EngineConnectionError, TableNotFoundError, UnsupportedFeatureError
from dal.config import ConnectionConfig
from dal.sqlite import SqliteCatalogDatabase, SqliteEngineAdapter
from schema import EngineKind

BLOG_DDL = """
CREATE TABLE users (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    email VARCHAR(255) NOT NULL UNIQUE,
    is_admin TINYINT(1) NOT NULL DEFAULT 0,
    created_at DATETIME,
    updated_at DATETIME
);
CREATE TABLE posts (
    id INTEGER PRIMARY KEY,
    user_id INTEGER NOT NULL REFERENCES users(id) ON DELETE CASCADE,
    title VARCHAR(200) NOT NULL,
    price DECIMAL(8,2),
    body TEXT,
    deleted_at DATETIME
);
CREATE TABLE tags (
    id INTEGER PRIMARY KEY,
    name VARCHAR(50) NOT NULL
);
CREATE TABLE post_tag (
    post_id INTEGER NOT NULL REFERENCES posts(id),
    tag_id INTEGER NOT NULL REFERENCES tags,
    PRIMARY KEY (post_id, tag_id)
);
CREATE INDEX posts_title_idx ON posts(title);
CREATE TRIGGER posts_touch AFTER UPDATE ON posts
BEGIN
    UPDATE posts SET title = title WHERE id = NEW.id;
END;
"""


@pytest.fixture
def blog_db(tmp_path):
    """A small blog schema on disk."""
    path = tmp_path / "blog.sqlite"
    conn = sqlite3.connect(str(path))
    conn.executescript(BLOG_DDL)
    conn.commit()
    conn.close()
    return path


def _adapter(path):
    config = ConnectionConfig(
        engine=EngineKind.SQLITE, connection_id="sqlite:blog", path=str(path)
    )
    return SqliteEngineAdapter(SqliteCatalogDatabase(config))


@pytest.mark.asyncio
async def test_sqlite_list_tables_skips_internal_tables(blog_db):
    """sqlite_sequence and other internal tables are not listed."""
    adapter = _adapter(blog_db)

    assert await adapter.list_tables() == ["post_tag", "posts", "tags", "users"]


@pytest.mark.asyncio
async def test_sqlite_columns_and_rowid_alias(blog_db):
    """A lone INTEGER primary key is the auto-incrementing rowid alias."""
    adapter = _adapter(blog_db)

    columns = {column.name: column for column in await adapter.get_columns("users")}

    assert list(columns) == ["id", "email", "is_admin", "created_at", "updated_at"]
    assert columns["id"].auto_increment is True
    assert columns["id"].nullable is False
    assert columns["email"].native_type == "VARCHAR(255)"
    assert columns["email"].length == 255
    assert columns["email"].nullable is False
    assert columns["is_admin"].default_value == "0"
    assert columns["created_at"].nullable is True


@pytest.mark.asyncio
async def test_sqlite_decimal_parameters(blog_db):
    """Declared precision and scale are parsed from the type string."""
    adapter = _adapter(blog_db)

    columns = {column.name: column for column in await adapter.get_columns("posts")}

    assert (columns["price"].precision, columns["price"].scale) == (8, 2)
    assert columns["price"].length is None


@pytest.mark.asyncio
async def test_sqlite_composite_primary_key_round_trip(blog_db):
    """Composite keys keep declaration order and surface as the primary index."""
    adapter = _adapter(blog_db)

    pk = await adapter.get_primary_key("post_tag")
    indexes = await adapter.get_indexes("post_tag")

    assert pk.columns == ("post_id", "tag_id")
    primary = [index for index in indexes if index.primary]
    assert len(primary) == 1
    assert primary[0].columns == ("post_id", "tag_id")
    assert primary[0].unique is True


@pytest.mark.asyncio
async def test_sqlite_unique_and_plain_indexes(blog_db):
    """UNIQUE constraints report unique indexes; CREATE INDEX reports non-unique ones."""
    adapter = _adapter(blog_db)

    user_indexes = await adapter.get_indexes("users")
    post_indexes = await adapter.get_indexes("posts")

    assert [(index.columns, index.unique, index.primary) for index in user_indexes] == [
        (("email",), True, False)
    ]
    assert [(index.name, index.unique) for index in post_indexes] == [("posts_title_idx", False)]


@pytest.mark.asyncio
async def test_sqlite_foreign_keys_resolve_implicit_target_column(blog_db):
    """A REFERENCES clause without a column targets the referenced primary key."""
    adapter = _adapter(blog_db)

    fks = {fk.column: fk for fk in await adapter.get_foreign_keys("post_tag")}
    post_fks = await adapter.get_foreign_keys("posts")

    assert fks["tag_id"].foreign_table == "tags"
    assert fks["tag_id"].foreign_column == "id"
    assert fks["post_id"].foreign_column == "id"
    assert all(fk.name.startswith("fk_post_tag_") for fk in fks.values())
    assert post_fks[0].on_delete == "CASCADE"
    assert post_fks[0].on_update == "NO ACTION"


@pytest.mark.asyncio
async def test_sqlite_metadata_and_triggers(blog_db):
    """Table options come from the DDL; triggers are parsed from sqlite_master."""
    adapter = _adapter(blog_db)

    metadata = await adapter.get_table_metadata("users")
    triggers = await adapter.get_triggers("posts")

    assert metadata.options == {"autoincrement": "true"}
    assert [(trigger.name, trigger.timing, trigger.event) for trigger in triggers] == [
        ("posts_touch", "AFTER", "UPDATE")
    ]


@pytest.mark.asyncio
async def test_sqlite_unsupported_catalogs(blog_db):
    """SQLite has no constraints, partitions or sequences catalog."""
    adapter = _adapter(blog_db)

    for method in (adapter.get_constraints, adapter.get_partitions, adapter.get_sequences):
        with pytest.raises(UnsupportedFeatureError):
            await method("posts")


@pytest.mark.asyncio
async def test_sqlite_missing_table(blog_db):
    """Unknown tables raise TableNotFoundError."""
    adapter = _adapter(blog_db)

    with pytest.raises(TableNotFoundError):
        await adapter.get_columns("ghosts")


@pytest.mark.asyncio
async def test_sqlite_missing_file_fails_ping(tmp_path):
    """A read-only handle on a missing file cannot connect."""
    adapter = _adapter(tmp_path / "missing.sqlite")

    with pytest.raises(EngineConnectionError):
        await adapter.database.ping()
