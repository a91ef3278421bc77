"""Expression composing and the order meta document."""
import cbor2
import pytest

from orderdeployer.deployment.rainlang import (
    ADD_ORDER_POST_TASK_ENTRYPOINTS,
    ORDER_ENTRYPOINTS,
    RAIN_META_DOCUMENT_MAGIC,
    ComposeError,
    build_order_meta,
    compose_rainlang,
    has_entrypoints,
    parse_body,
)


BODY = """
#calculate-io
_ _: 0 0;
#handle-io
:;
#handle-add-order
:;
"""


def test_compose_order_entrypoints():
    rainlang = compose_rainlang(BODY, ORDER_ENTRYPOINTS)
    assert rainlang == "/* 0. calculate-io */ \n_ _: 0 0;\n\n/* 1. handle-io */ \n:;"


def test_compose_post_task():
    assert has_entrypoints(BODY, ADD_ORDER_POST_TASK_ENTRYPOINTS)
    assert not has_entrypoints("#calculate-io\n:;", ADD_ORDER_POST_TASK_ENTRYPOINTS)
    assert compose_rainlang(BODY, ADD_ORDER_POST_TASK_ENTRYPOINTS) == "/* 0. handle-add-order */ \n:;"


def test_missing_entrypoint():
    with pytest.raises(ComposeError, match="handle-io"):
        compose_rainlang("#calculate-io\n:;", ORDER_ENTRYPOINTS)


def test_bindings():
    """Bindings are replaced as whole words, user values override declared ones."""
    body = """
#max-amount 1000
#price !The price is supplied by the user
#calculate-io
_ _: max-amount price;
#handle-io
:;
"""
    sections = parse_body(body)
    assert sections["max-amount"].text == "1000"
    assert sections["price"].is_elided()
    assert sections["price"].elided_message == "The price is supplied by the user"

    with pytest.raises(ComposeError, match="The price is supplied by the user"):
        compose_rainlang(body, ORDER_ENTRYPOINTS)

    rainlang = compose_rainlang(body, ORDER_ENTRYPOINTS, {"price": "2.5"})
    assert "_ _: 1000 2.5;" in rainlang

    rainlang = compose_rainlang(body, ORDER_ENTRYPOINTS, {"price": "2.5", "max-amount": "7"})
    assert "_ _: 7 2.5;" in rainlang


def test_binding_prefix_not_replaced():
    body = "#amount 5\n#calculate-io\n_ _: max-amount amount;\n#handle-io\n:;"
    rainlang = compose_rainlang(body, ORDER_ENTRYPOINTS)
    assert "_ _: max-amount 5;" in rainlang


def test_order_meta():
    rainlang = compose_rainlang(BODY, ORDER_ENTRYPOINTS)
    meta = build_order_meta(rainlang)
    assert meta.startswith(RAIN_META_DOCUMENT_MAGIC)
    assert meta.hex() == (
        "ff0a89c674ee7874a30058382f2a20302e2063616c63756c6174652d696f202a2f200a5f205f3a203020303b0a0a"
        "2f2a20312e2068616e646c652d696f202a2f200a3a3b011bff13109e41336ff20278186170706c69636174696f6e"
        "2f6f637465742d73747265616d"
    )

    item = cbor2.loads(meta[len(RAIN_META_DOCUMENT_MAGIC):])
    assert item[0].decode() == rainlang


def test_substituted_values_are_not_substituted_again():
    """A binding value naming another binding is inserted as is."""
    body = "#calculate-io\n_ _: first second;\n#handle-io\n:;"
    rainlang = compose_rainlang(body, ORDER_ENTRYPOINTS, {"first": "second", "second": "7"})
    assert "_ _: second 7;" in rainlang

    rainlang = compose_rainlang(body, ORDER_ENTRYPOINTS, {"second": "7", "first": "second"})
    assert "_ _: second 7;" in rainlang
