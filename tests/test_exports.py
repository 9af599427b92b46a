import csv
import io
import re
from datetime import datetime, timedelta, timezone

import errors
import exports
import models
import pytest
from botocore.exceptions import ClientError


def read_csv(body):
    return list(csv.DictReader(io.StringIO(body.decode("utf-8"))))


def test_export_uploads_one_row_per_link(client, object_store):
    client.post("/links", json={"original_url": "https://example.com/a", "short_code": "first"})
    client.post("/links", json={"original_url": "https://example.com/b?x=1,2", "short_code": "second"})
    client.get("/r/first", follow_redirects=False)

    response = client.post("/exports")
    assert response.status_code == 200
    url = response.json()["url"]

    [(bucket, key)] = object_store.objects
    assert bucket == "link-exports"
    assert re.fullmatch(r"exports/links_\d+_[0-9a-f-]{36}\.csv", key)
    assert url == f"https://storage.example.com/link-exports/{key}"

    stored = object_store.objects[(bucket, key)]
    assert stored["ContentType"] == "text/csv"
    assert stored["ACL"] == "public-read"
    body = stored["Body"]
    assert body.decode("utf-8").splitlines()[0] == "original_url,short_url,access_count,created_at"

    rows = read_csv(body)
    assert [row["short_url"] for row in rows] == ["https://sho.rt/r/second", "https://sho.rt/r/first"]
    assert rows[0]["original_url"] == "https://example.com/b?x=1,2"
    assert rows[1]["access_count"] == "1"
    assert datetime.fromisoformat(rows[0]["created_at"]).utcoffset() == timedelta(0)


def test_export_of_empty_store_has_header_only(client, object_store):
    assert client.post("/exports").status_code == 200
    [stored] = object_store.objects.values()
    assert read_csv(stored["Body"]) == []


def test_upload_failure_is_opaque(client, object_store, monkeypatch, caplog):
    def refuse(**kwargs):
        raise ClientError({"Error": {"Code": "AccessDenied", "Message": "secret bucket policy"}}, "PutObject")

    monkeypatch.setattr(object_store, "put_object", refuse)
    response = client.post("/exports")
    assert response.status_code == 500
    assert response.json() == {"detail": "export failed"}
    assert "AccessDenied" in caplog.text


def test_export_without_bucket_fails(db, settings):
    unconfigured = settings.model_copy(update={"s3_bucket": None})
    with pytest.raises(errors.ExportFailed):
        exports.export_links(db, None, unconfigured)


def test_make_s3_client_needs_bucket(settings):
    assert exports.make_s3_client(settings.model_copy(update={"s3_bucket": None})) is None


def test_public_url_prefers_export_base(settings):
    custom = settings.model_copy(update={"export_public_url": "https://files.example.com/"})
    assert exports.public_url(custom, "exports/x.csv") == "https://files.example.com/exports/x.csv"
    assert exports.public_url(settings, "exports/x.csv") == "https://storage.example.com/link-exports/exports/x.csv"


def test_render_csv_uses_public_base(settings):
    link = models.Link(
        original_url="https://example.com",
        short_code="abcd",
        access_count=7,
        created_at=datetime(2024, 2, 1, 8, 0, tzinfo=timezone.utc),
    )
    [row] = read_csv(exports.render_csv([link], settings))
    assert row == {
        "original_url": "https://example.com",
        "short_url": "https://sho.rt/r/abcd",
        "access_count": "7",
        "created_at": "2024-02-01T08:00:00+00:00",
    }


def test_render_csv_marks_naive_timestamps_as_utc(settings):
    link = models.Link(
        original_url="https://example.com",
        short_code="abcd",
        access_count=0,
        created_at=datetime(2024, 2, 1, 8, 0, 0, 250000),
    )
    [row] = read_csv(exports.render_csv([link], settings))
    assert row["created_at"] == "2024-02-01T08:00:00.250000+00:00"
