# lsmdb

Pure-Python building blocks of an LSM-tree relational database, with no
third-party dependencies:

- **Version tracking** (`lsmdb.storage.version`): frozen `SSTableMetadata`
  records and a `VersionSet` that groups tables by level, each level kept
  sorted by table id. It offers `add_table`, `remove_table` (returns the
  removed table or `None`), `level_tables`, `all_tables_newest_first`,
  `max_table_id`, `total_table_count` and `clear`.
- **Manifest** (`lsmdb.storage.manifest`): `Manifest(directory, file_name="MANIFEST.log")`
  is an append-only log of `AddTable` and `RemoveTable` edits. Opening it
  replays the log into `manifest.version_set`; a torn record at the tail of
  the file is ignored. `apply_edit` appends, fsyncs and applies an edit.
  A `Manifest` is a context manager; `close()` syncs and closes the file.
  Records that cannot be encoded or decoded raise `ManifestError`.
- **Compaction planning**:
  - `lsmdb.storage.leveled`: `LeveledCompactionConfig`, `pick_compaction`
    (level-0 file count and per-level size triggers, reported as a
    `LeveledTrigger`), `target_size_bytes` and `ranges_overlap`.
  - `lsmdb.storage.tiered`: `TieredCompactionConfig`, `pick_compaction`,
    `group_tables_into_tiers` and `tier_id_for_size` (index of the highest
    set bit of a table's size).
  - `lsmdb.storage.scheduler`: `CompactionScheduler`, a priority queue of
    plans that pops the highest score first (first-in first-out on ties) and
    refuses a plan whose `plan_signature` is already queued;
    `pick_plan` chooses the leveled or tiered picker from the config type;
    `CompactionMetrics` records writes and lookups and reports write, read
    and space amplification.
- **SQL front end** (`lsmdb.sql`):
  - `lsmdb.sql.lexer`: `tokenize` turns text into `Token`s (kind, byte
    `Span`, value), ending with an EOF token.
  - `lsmdb.sql.nodes`: the syntax tree (`CreateTableStatement`,
    `SelectStatement`, `InsertStatement`, `UpdateStatement`,
    `DeleteStatement`, `DropTableStatement`, `BeginStatement`,
    `CommitStatement`, `RollbackStatement` and the expression nodes).
    SQL `NULL` is `Literal(None)`.
  - `lsmdb.sql.expressions`: `TokenStream`, `parse_expression` and the
    parse errors.
  - `lsmdb.sql.parser`: `parse_sql` and `parse_statement`.

## Installation

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## Examples

Record tables in a manifest and reopen it:

```python
from lsmdb.storage.manifest import AddTable, Manifest, RemoveTable
from lsmdb.storage.version import SSTableMetadata

def table(table_id):
    return SSTableMetadata(
        table_id=table_id,
        level=0,
        file_name=f"sst-{table_id:020}.sst",
        smallest_key=b"a",
        largest_key=b"z",
        file_size_bytes=1024,
    )

with Manifest("data/manifest") as manifest:
    manifest.apply_edit(AddTable(table(1)))
    manifest.apply_edit(AddTable(table(2)))
    manifest.apply_edit(RemoveTable(level=0, table_id=1))

with Manifest("data/manifest") as manifest:
    versions = manifest.version_set
    print([t.table_id for t in versions.all_tables_newest_first()])  # [2]
```

Plan and schedule a compaction:

```python
from lsmdb.storage.leveled import LeveledCompactionConfig, pick_compaction
from lsmdb.storage.scheduler import CompactionScheduler
from lsmdb.storage.version import VersionSet

versions = VersionSet()
for table_id in range(1, 5):
    versions.add_table(table(table_id))

config = LeveledCompactionConfig()
plan = pick_compaction(versions, config)        # LeveledTrigger.LEVEL0_OVERFLOW

scheduler = CompactionScheduler()
task_id = scheduler.schedule_from_versions(versions, config)
task = scheduler.pop_next()                     # ScheduledCompaction
scheduler.mark_completed(task.task_id)
```

Parse SQL:

```python
from lsmdb.sql.parser import parse_sql, parse_statement

create = parse_statement(
    "CREATE TABLE users (id BIGINT NOT NULL, email TEXT, PRIMARY KEY (id))"
)
select = parse_statement("SELECT id FROM users WHERE id = 7 ORDER BY id DESC LIMIT 10")
print(select.from_table.name, select.limit)     # users 10

statements = parse_sql("BEGIN ISOLATION LEVEL SNAPSHOT; COMMIT; ROLLBACK;")
```

`tokenize` raises subclasses of `lsmdb.sql.lexer.LexError`
(`UnexpectedCharacterError`, `UnterminatedStringError`,
`InvalidNumberError`). `parse_sql` and `parse_statement` raise
`lsmdb.sql.expressions.ParseError` or one of its subclasses
(`UnexpectedTokenError`, `UnexpectedEofError`, `InvalidLimitError`,
`InvalidStatementError`); a lexing failure arrives as a `ParseError` whose
cause is the `LexError`.

## What this package does not do

It holds the metadata, planning and parsing layers only. There is no storage
engine: no write-ahead log, memtable, SSTable reader or writer, and nothing
that runs a compaction plan against files. SQL statements are parsed but not
validated against a catalog, planned or executed, and there are no
transactions behind `BEGIN`, `COMMIT` and `ROLLBACK`. The package has no
command-line tools and no server.