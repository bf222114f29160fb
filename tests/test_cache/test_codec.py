"""Tests for the pydantic-backed JSON codec."""

from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import datetime, timezone

import pytest
from pydantic import BaseModel, Field

from httpstash.cache import JSONCodec
from httpstash.exceptions import DecodeError, EncodeError, ErrorKind


class Post(BaseModel):
    id: int
    title: str
    published: datetime


@dataclass
class Point:
    x: int
    y: int


class TestEncode:
    def test_pretty_printed_by_default(self) -> None:
        data = JSONCodec().encode({"a": 1})
        assert data == b'{\n  "a": 1\n}'

    def test_compact_without_indent(self) -> None:
        assert JSONCodec(indent=None).encode({"a": [1, 2]}) == b'{"a":[1,2]}'

    def test_encodes_models_and_dataclasses(self) -> None:
        codec = JSONCodec(indent=None)
        when = datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
        post = json.loads(codec.encode(Post(id=1, title="Hi", published=when)))
        assert post == {"id": 1, "title": "Hi", "published": "2024-01-02T03:04:05Z"}
        assert json.loads(codec.encode(Point(1, 2))) == {"x": 1, "y": 2}

    def test_unencodable_raises_encode_error(self) -> None:
        with pytest.raises(EncodeError) as exc_info:
            JSONCodec().encode(object())
        assert exc_info.value.kind is ErrorKind.ENCODE_FAILURE


class TestDecode:
    def test_any_returns_plain_json(self) -> None:
        assert JSONCodec().decode(b'{"a": [1, 2]}') == {"a": [1, 2]}

    def test_decodes_into_model_with_datetime(self) -> None:
        post = JSONCodec().decode(
            b'{"id": 1, "title": "Hi", "published": "2024-01-02T03:04:05Z"}', Post
        )
        assert post.published == datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)

    def test_decodes_list_of_dataclasses(self) -> None:
        points = JSONCodec().decode('[{"x": 1, "y": 2}]', list[Point])
        assert points == [Point(1, 2)]

    def test_invalid_json_raises_decode_error(self) -> None:
        with pytest.raises(DecodeError):
            JSONCodec().decode(b"<html>")

    def test_shape_mismatch_raises_decode_error(self) -> None:
        with pytest.raises(DecodeError) as exc_info:
            JSONCodec().decode(b'{"id": "x"}', Post)
        assert exc_info.value.kind is ErrorKind.DECODE_FAILURE


class CamelUser(BaseModel):
    user_id: int = Field(alias="userId")
    display_name: str = Field(alias="displayName")


class TestAliases:
    def test_models_are_encoded_by_alias(self) -> None:
        user = CamelUser(userId=7, displayName="Ada")
        assert json.loads(JSONCodec().encode(user)) == {"userId": 7, "displayName": "Ada"}

    def test_aliased_model_survives_encode_then_decode(self) -> None:
        codec = JSONCodec()
        user = codec.decode(b'{"userId": 7, "displayName": "Ada"}', CamelUser)
        assert codec.decode(codec.encode(user), CamelUser) == user

    def test_nested_aliased_models(self) -> None:
        codec = JSONCodec(indent=None)
        users = codec.decode(b'[{"userId": 1, "displayName": "A"}]', list[CamelUser])
        assert codec.encode(users) == b'[{"userId":1,"displayName":"A"}]'
