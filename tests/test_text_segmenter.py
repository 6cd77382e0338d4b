from tools.text_segmenter import MIN_CLAUSE_LENGTH, TextSegmenter, segment_text_tool


def test_segments_preserve_document_order_and_drop_noise():
    text = (
        "First clause about payment terms.\n\n"
        "7\n\n"
        "Second clause about termination rights.\n\n\n"
        "Third clause about governing law."
    )

    candidates = TextSegmenter().segment(text)

    assert [c.text for c in candidates] == [
        "First clause about payment terms.",
        "Second clause about termination rights.",
        "Third clause about governing law.",
    ]
    assert [c.index for c in candidates] == [0, 1, 2]


def test_blank_lines_with_whitespace_and_crlf_split_segments():
    text = "Clause A text here.\r\n   \r\nClause B text here.\r\n"

    candidates = TextSegmenter().segment(text)

    assert [c.text for c in candidates] == ["Clause A text here.", "Clause B text here."]


def test_single_newlines_stay_within_a_segment():
    text = "Definitions:\n'Premises' means the apartment.\n\nPayment is due monthly in advance."

    candidates = TextSegmenter().segment(text)

    assert len(candidates) == 2
    assert candidates[0].text == "Definitions:\n'Premises' means the apartment."


def test_segments_shorter_than_threshold_are_excluded():
    short = "x" * (MIN_CLAUSE_LENGTH - 1)
    exact = "y" * MIN_CLAUSE_LENGTH

    candidates = TextSegmenter().segment(f"{short}\n\n{exact}")

    assert [c.text for c in candidates] == [exact]


def test_empty_and_noise_only_text_yield_no_candidates():
    assert TextSegmenter().segment("") == []
    assert TextSegmenter().segment("1\n\n2\n\n   \n\nPage 3") == []


def test_segmentation_is_idempotent():
    text = "Clause A text here.\n\nClause B text here.\n\nok\n\nClause C text here."
    segmenter = TextSegmenter()

    assert segmenter.segment(text) == segmenter.segment(text)


def test_tool_function_honours_custom_threshold():
    candidates = segment_text_tool("short\n\nlonger segment", min_length=5)

    assert [c.text for c in candidates] == ["short", "longer segment"]
