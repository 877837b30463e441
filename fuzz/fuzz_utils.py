import sys

import atheris

with atheris.instrument_imports():
    from clockwork.utils import coerce_int, parse_bool, parse_int, sanitize_topic_segment


def TestOneInput(data: bytes) -> None:
    """Fuzz utility parsing functions with arbitrary input."""
    value = data.decode("utf-8", errors="ignore")

    # Topic segments must never contain MQTT separators or wildcards
    segment = sanitize_topic_segment(value)
    assert segment
    assert not any(char in segment for char in "/+#")

    # Parsers with default fallbacks (should never raise)
    parse_bool(value)
    parse_int(value, default=0)
    coerce_int(value)


def main() -> None:
    atheris.Setup(sys.argv, TestOneInput)
    atheris.Fuzz()


if __name__ == "__main__":
    main()
