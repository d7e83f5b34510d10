"""Tests for the ordered multi-attempt decode pipeline."""

import base64
import io
from unittest import mock

import cv2
import pytest
from PIL import Image

from conftest import MARKER_TEXT, sheet_with_marker
from decoding import (
    Decoded,
    DecodePipeline,
    NotFound,
    decode_marker,
    decode_marker_base64,
    marker_matches,
)
from preprocessing import (
    AttemptStage,
    CropRegion,
    DecodeAttempt,
    PreprocessMode,
    load_source,
)


class ScriptedDecoder:
    """Fake backend: records every image and succeeds when ``accept`` says so."""

    def __init__(self, accept=lambda image: False, text="SHEET-42"):
        self.accept = accept
        self.text = text
        self.seen = []

    def decode(self, image, attempt_both=True):
        self.seen.append((image.width, image.height, image.channels))
        return self.text if self.accept(image) else None


def gray_of_width(width):
    return lambda image: image.channels == 1 and image.width == width


class TestDecodePipeline:
    def test_stops_at_first_success(self, white_png):
        decoder = ScriptedDecoder(accept=gray_of_width(400))
        pipeline = DecodePipeline(decoder=decoder, max_workers=1)

        with mock.patch("decoding.pipeline.find_region") as find_region:
            outcome = pipeline.decode(white_png)

        assert isinstance(outcome, Decoded)
        assert outcome.text == "SHEET-42"
        assert outcome.attempt.stage is AttemptStage.CORNER
        assert outcome.attempt.mode is PreprocessMode.THRESHOLD
        assert outcome.attempts_tried == 6
        assert len(decoder.seen) == 6
        find_region.assert_not_called()

    def test_located_attempts_come_last(self, white_png):
        decoder = ScriptedDecoder(accept=gray_of_width(300))
        pipeline = DecodePipeline(decoder=decoder, max_workers=1)

        with mock.patch(
            "decoding.pipeline.find_region",
            return_value=CropRegion(600, 50, 150, 150),
        ) as find_region:
            outcome = pipeline.decode(white_png)

        find_region.assert_called_once()
        assert outcome.found
        assert outcome.attempt.stage is AttemptStage.LOCATED
        assert outcome.attempt.mode is PreprocessMode.SHARPEN_THRESHOLD
        assert [a.stage for a in outcome.evaluated] == (
            [AttemptStage.FULL]
            + [AttemptStage.FULL_HIGH_RES] * 3
            + [AttemptStage.CORNER] * 5
            + [AttemptStage.LOCATED]
        )

    def test_exhausted_page_is_not_found(self, white_png):
        decoder = ScriptedDecoder()
        outcome = DecodePipeline(decoder=decoder, max_workers=1).decode(white_png)

        assert outcome == NotFound(reason="exhausted", evaluated=outcome.evaluated)
        assert not outcome.found
        assert outcome.attempts_tried == 9

    def test_located_attempts_exhausted(self, white_png):
        decoder = ScriptedDecoder()
        with mock.patch(
            "decoding.pipeline.find_region",
            return_value=CropRegion(600, 50, 150, 150),
        ):
            outcome = DecodePipeline(decoder=decoder, max_workers=1).decode(white_png)

        assert outcome.reason == "exhausted"
        assert outcome.attempts_tried == 11

    def test_region_search_can_be_disabled(self, white_png):
        pipeline = DecodePipeline(decoder=ScriptedDecoder(), max_workers=1, locate_region=False)
        with mock.patch("decoding.pipeline.find_region") as find_region:
            outcome = pipeline.decode(white_png)
        find_region.assert_not_called()
        assert outcome.attempts_tried == 9

    def test_invalid_image(self):
        decoder = ScriptedDecoder(accept=lambda image: True)
        outcome = DecodePipeline(decoder=decoder, max_workers=1).decode(b"\x00not an image")

        assert outcome == NotFound(reason="invalid_image")
        assert outcome.attempts_tried == 0
        assert decoder.seen == []

    def test_invalid_region_attempt_is_skipped(self, white_png):
        decoder = ScriptedDecoder(accept=lambda image: True)
        pipeline = DecodePipeline(decoder=decoder, max_workers=1)
        source = load_source(white_png)
        attempts = [
            DecodeAttempt(stage=AttemptStage.LOCATED, crop=CropRegion(990, 0, 50, 50)),
            DecodeAttempt(stage=AttemptStage.FULL),
        ]

        outcome = pipeline.scan(source, attempts)

        assert outcome.attempt == attempts[1]
        assert outcome.evaluated == tuple(attempts)
        assert len(decoder.seen) == 1

    def test_thread_pool_keeps_schedule_order(self, white_png):
        region = CropRegion(600, 50, 150, 150)
        results = []
        for workers in (1, 4):
            decoder = ScriptedDecoder()
            with mock.patch("decoding.pipeline.find_region", return_value=region):
                outcome = DecodePipeline(decoder=decoder, max_workers=workers).decode(white_png)
            results.append((outcome, decoder.seen))

        assert results[0] == results[1]

    def test_thread_pool_short_circuits(self, white_png):
        decoder = ScriptedDecoder(accept=gray_of_width(400))
        outcome = DecodePipeline(decoder=decoder, max_workers=4).decode(white_png)
        assert outcome.attempt.stage is AttemptStage.CORNER
        assert len(decoder.seen) == 6

    def test_rejects_zero_workers(self):
        with pytest.raises(ValueError, match="max_workers"):
            DecodePipeline(decoder=ScriptedDecoder(), max_workers=0)


class TestOpenCVDecoding:
    def test_clean_sheet_decodes_before_region_search(self, marker_png):
        outcome = decode_marker(marker_png, max_workers=1)
        assert isinstance(outcome, Decoded)
        assert outcome.text == MARKER_TEXT
        assert outcome.attempt.stage is not AttemptStage.LOCATED

    def test_blank_sheet_not_found(self, white_png):
        outcome = decode_marker(white_png, max_workers=1)
        assert outcome.reason == "exhausted"


class TestBase64Input:
    def test_plain_base64(self, white_png):
        payload = base64.b64encode(white_png).decode("ascii")
        outcome = decode_marker_base64(payload, decoder=ScriptedDecoder(accept=lambda image: True))
        assert outcome.text == "SHEET-42"

    def test_data_url_prefix_is_stripped(self, white_png):
        payload = "data:image/png;base64," + base64.b64encode(white_png).decode("ascii")
        outcome = decode_marker_base64(
            payload, decoder=ScriptedDecoder(accept=lambda image: True), max_workers=1
        )
        assert outcome.found

    def test_line_wrapped_base64(self, white_png):
        payload = base64.encodebytes(white_png).decode("ascii")
        assert "\n" in payload.strip()
        outcome = decode_marker_base64(
            payload, decoder=ScriptedDecoder(accept=lambda image: True), max_workers=1
        )
        assert outcome.found

    def test_invalid_base64(self):
        outcome = decode_marker_base64("@@not base64@@", decoder=ScriptedDecoder())
        assert outcome == NotFound(reason="invalid_image")


class TestMarkerMatches:
    def test_ignores_case_and_whitespace(self):
        assert marker_matches(" folio-0007\n", "FOLIO-0007")

    def test_any_of_several(self):
        assert marker_matches("B", ["A", "b"])
        assert not marker_matches("C", ["A", "B"])

    def test_extra_fields_after_exam_id(self):
        assert marker_matches("EX-12|P1", "EX-12")
        assert marker_matches("ex-12|p1|2024", ["OTHER", "EX-12"])
        assert not marker_matches("EX-123|P1", "EX-12")

    def test_folio_tag_anywhere_in_payload(self):
        assert marker_matches("EXAMEN FOLIO:EX-12", "EX-12")
        assert not marker_matches("EXAMEN FOLIO EX-12", "EX-12")

    def test_nothing_expected_matches(self):
        assert marker_matches("X", None)
        assert marker_matches("X", [])


@pytest.mark.slow
class TestFullResolutionPhoto:
    def test_rotated_a4_scan_decodes(self):
        upright = sheet_with_marker(width=2480, height=3508, top=120)
        stored = cv2.rotate(upright, cv2.ROTATE_90_COUNTERCLOCKWISE)
        exif = Image.Exif()
        exif[0x0112] = 6
        buffer = io.BytesIO()
        Image.fromarray(stored).save(buffer, format="JPEG", quality=92, exif=exif)

        outcome = decode_marker(buffer.getvalue())

        assert outcome.found
        assert outcome.text == MARKER_TEXT
