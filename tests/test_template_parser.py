from corpusgen.template.parser import parse_template


def test_parse_template_splits_literals_and_fields():
    parsed = parse_template(b"A{{.X}}B{{.Y}}C")
    assert parsed.segments == ((b"A", "X"), (b"B", "Y"))
    assert parsed.trailer == b"C"
    assert parsed.field_names == ["X", "Y"]
    assert parsed.prefixes == {"X": b"A", "Y": b"B"}


def test_template_without_placeholders_is_all_trailer():
    parsed = parse_template(b'{"static": true}\n')
    assert parsed.segments == ()
    assert parsed.trailer == b'{"static": true}\n'


def test_empty_template():
    parsed = parse_template(b"")
    assert parsed.segments == ()
    assert parsed.trailer == b""


def test_repeated_field_keeps_each_occurrence():
    parsed = parse_template(b"<{{.X}}|{{.X}}>")
    assert parsed.field_names == ["X", "X"]
    assert parsed.segments == ((b"<", "X"), (b"|", "X"))
    assert parsed.prefixes == {"X": b"<"}
    assert parsed.trailer == b">"


def test_stray_braces_stay_literal():
    parsed = parse_template(b'{"a":{{.A}},"b":{x}}')
    assert parsed.segments == ((b'{"a":', "A"),)
    assert parsed.trailer == b',"b":{x}}'


def test_brace_directly_before_placeholder():
    parsed = parse_template(b"{{{.X}}}")
    assert parsed.segments == ((b"{", "X"),)
    assert parsed.trailer == b"}"


def test_malformed_placeholders_are_literal():
    assert parse_template(b"x{{.Y").trailer == b"x{{.Y"
    assert parse_template(b"{{.}}").trailer == b"{{.}}"
    assert parse_template(b"{{X}}").trailer == b"{{X}}"
    assert parse_template(b"{{.a}b}}").trailer == b"{{.a}b}}"


def test_field_names_are_taken_verbatim():
    parsed = parse_template(b"{{.Src Addr }}{{.aws.vpcflow.action}}")
    assert parsed.field_names == ["Src Addr ", "aws.vpcflow.action"]
