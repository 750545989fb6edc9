import pytest

from dataimport.domain.records import NamedRecord, PositionalRecord
from dataimport.domain.transform import CallbackConverter, ConverterChain, NullValueConverter
from dataimport.errors import ConfigurationError, InvalidConverterError


def test_callback_converter_applies_callback():
    converter = CallbackConverter(lambda record: NamedRecord({**record.as_dict(), "seen": "1"}))

    result = converter.convert(NamedRecord({"a": "x"}))

    assert result == NamedRecord({"a": "x", "seen": "1"})


def test_callback_converter_requires_callable():
    with pytest.raises(InvalidConverterError) as exc_info:
        CallbackConverter("not a function")

    assert isinstance(exc_info.value, ConfigurationError)
    assert exc_info.value.code == "INVALID_CONVERTER"


def test_callback_errors_are_not_wrapped():
    def explode(record):
        raise KeyError("missing")

    with pytest.raises(KeyError):
        CallbackConverter(explode).convert(PositionalRecord(("a",)))


def test_chain_applies_converters_in_order():
    chain = ConverterChain(
        [
            lambda record: PositionalRecord.of([*record, "first"]),
            CallbackConverter(lambda record: PositionalRecord.of([*record, "second"])),
        ]
    )

    assert len(chain) == 2
    assert chain.convert(PositionalRecord(("x",))).as_list() == ["x", "first", "second"]


def test_chain_stops_on_absent_record():
    calls = []

    def drop(record):
        calls.append("drop")
        return None

    def never(record):
        calls.append("never")
        return record

    chain = ConverterChain([drop, never])

    assert chain.convert(PositionalRecord(("x",))) is None
    assert calls == ["drop"]


def test_empty_chain_is_identity():
    record = NamedRecord({"a": "1"})
    assert ConverterChain().convert(record) is record


def test_null_value_converter():
    converter = NullValueConverter()

    named = converter.convert(NamedRecord({"a": " x ", "b": "NULL", "c": ""}))
    positional = converter.convert(PositionalRecord((" y", "null")))

    assert named.as_dict() == {"a": "x", "b": None, "c": None}
    assert positional.as_list() == ["y", None]
