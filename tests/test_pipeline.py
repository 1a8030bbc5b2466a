"""Tests for the pipeline module."""
import logging

from ttmlscene.config import Dialect
from ttmlscene.errors import ResultCode
from ttmlscene.pipeline import convert


class TestConvert:
    """Tests for convert function."""

    def test_success(self, simple_document):
        """Test a good document produces scenes and trees."""
        result = convert(simple_document, Dialect.EBU_TT_D)
        assert result.ok
        assert result.code is ResultCode.SUCCESS
        assert len(result.scenes) == 3
        assert len(result.trees) == 3
        assert result.document.language == "en"

    def test_parse_failure(self):
        """Test malformed bytes give PARSE_FAILURE and no output."""
        result = convert(b"<tt><body>", Dialect.EBU_TT_D)
        assert result.code is ResultCode.PARSE_FAILURE
        assert result.trees == ()
        assert not result.ok

    def test_wrong_root_is_parse_failure(self):
        """Test a non-tt root is a parse failure."""
        assert convert(b"<html/>", Dialect.TTML1).code is ResultCode.PARSE_FAILURE

    def test_no_renderable_content(self, make_ttml, caplog):
        """Test a document with no timed content yields NO_SCENES_PRODUCED."""
        with caplog.at_level(logging.ERROR):
            result = convert(make_ttml("<div><p>untimed</p></div>"), Dialect.EBU_TT_D)
        assert result.code is ResultCode.NO_SCENES_PRODUCED
        assert result.scenes == ()
        assert result.trees == ()
        assert caplog.records

    def test_dialect_controls_time_grammar(self, make_ttml):
        """Test offset times only work outside EBU-TT-D."""
        data = make_ttml('<p begin="0s" end="1s">x</p>')
        assert convert(data, Dialect.IMSC1).ok
        assert convert(data, Dialect.EBU_TT_D).code is ResultCode.NO_SCENES_PRODUCED
