"""Tests for log masking of share secrets."""

import logging

import pytest

from common.logging_config import SensitiveDataFilter


def make_record(msg, args=()):
    return logging.LogRecord("shareserver", logging.INFO, __file__, 1, msg, args, None)


@pytest.mark.parametrize("message,secret", [
    ("Creating share with password=hunter2", "hunter2"),
    ('{"reverse_share_token": "rs-abc123"}', "rs-abc123"),
    ("share_rs-1_token=eyJhbGci; path=/", "eyJhbGci"),
    ("Authorization: Bearer abc.def.ghi", "abc.def.ghi"),
])
def test_filter_masks_secrets_in_message(message, secret):
    record = make_record(message)

    assert SensitiveDataFilter().filter(record) is True
    assert secret not in record.getMessage()
    assert "***MASKED***" in record.getMessage()


def test_filter_masks_secrets_in_args():
    record = make_record("Request body: %s", ("token=abc123",))

    SensitiveDataFilter().filter(record)

    assert record.getMessage() == "Request body: token=***MASKED***"


def test_filter_leaves_plain_messages_alone():
    record = make_record("Stored chunk 1/3 for file %s", ("f-1",))

    SensitiveDataFilter().filter(record)

    assert record.getMessage() == "Stored chunk 1/3 for file f-1"
