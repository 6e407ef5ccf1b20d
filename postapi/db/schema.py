# postapi/db/schema.py

from sqlalchemy import (
    MetaData, Table, Column, Integer, String, Text, Boolean
)

metadata = MetaData()

posts = Table(
    "posts",
    metadata,
    # insertion order for listings; not part of the public Post shape
    Column("seq", Integer, primary_key=True, autoincrement=True),
    Column("id", String(32), unique=True, nullable=False),
    Column("title", Text, nullable=False),
    Column("description", Text, nullable=True),
    Column("published", Boolean, nullable=False, default=False),
)
