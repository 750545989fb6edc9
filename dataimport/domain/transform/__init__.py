from .converters import CallbackConverter, ConverterChain, NullValueConverter

__all__ = [
    "CallbackConverter",
    "ConverterChain",
    "NullValueConverter",
]
