import datetime as dt

import pytz

from dircount.db.accessors.directory_counts import get_directory_count
from dircount.db.accessors.objects import (
    delete_object,
    get_object,
    get_objects_in_directory,
    insert_object,
)
from dircount.types.db_session import DbSessionFactory


def test_insert_and_delete_object(session_factory: DbSessionFactory):
    created = pytz.utc.localize(dt.datetime(2026, 1, 1))

    with session_factory() as session:
        assert insert_object(
            session=session,
            bucket="photos",
            name="2026/01/img.jpg",
            size=1024,
            created=created,
        )
        session.commit()

    with session_factory() as session:
        object_db = get_object(session=session, bucket="photos", name="/2026/01/img.jpg")
        assert object_db is not None
        assert object_db.name == "/2026/01/img.jpg"
        assert object_db.directory == "/2026/01"
        assert object_db.size == 1024
        assert object_db.created == created

        # No trigger and no application-side maintenance
        assert get_directory_count(session=session, directory="/2026/01") == 0

        assert delete_object(session=session, bucket="photos", name="/2026/01/img.jpg")
        assert not delete_object(
            session=session, bucket="photos", name="/2026/01/img.jpg"
        )
        session.commit()

        assert get_object(session=session, bucket="photos", name="2026/01/img.jpg") is None


def test_duplicate_object_is_counted_once(session_factory: DbSessionFactory):
    with session_factory() as session:
        assert insert_object(session=session, bucket="b", name="/a/x", update_counts=True)
        assert not insert_object(
            session=session, bucket="b", name="/a/x", update_counts=True
        )
        # Same name, other bucket
        assert insert_object(session=session, bucket="c", name="/a/x", update_counts=True)
        session.commit()

        assert get_directory_count(session=session, directory="/a") == 2


def test_get_objects_in_directory(session_factory: DbSessionFactory):
    with session_factory() as session:
        for bucket, name in (("b", "/a/2"), ("b", "/a/1"), ("c", "/a/3"), ("b", "/a/d/4")):
            insert_object(session=session, bucket=bucket, name=name)
        session.commit()

        assert [o.name for o in get_objects_in_directory(session, "/a")] == [
            "/a/1",
            "/a/2",
            "/a/3",
        ]
        assert [
            o.name for o in get_objects_in_directory(session, "/a", bucket="c")
        ] == ["/a/3"]
