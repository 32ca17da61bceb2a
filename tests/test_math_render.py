from app.services.math_render import question_view, split_math_segments


def test_split_inline_and_block_math():
    segments = split_math_segments("Find $x$ if $$x^2 = 4$$ holds.")
    assert segments == [
        {"kind": "text", "value": "Find "},
        {"kind": "inline", "value": "x"},
        {"kind": "text", "value": " if "},
        {"kind": "block", "value": "x^2 = 4"},
        {"kind": "text", "value": " holds."},
    ]


def test_escaped_and_unmatched_dollars_stay_text():
    assert split_math_segments("It costs \\$5") == [{"kind": "text", "value": "It costs \\$5"}]
    assert split_math_segments("Only $ one") == [{"kind": "text", "value": "Only $ one"}]
    assert split_math_segments("") == []


def test_question_view_splits_options():
    view = question_view({"question_statement": "Value of $\\pi$?", "options": ["A) $3.14$", "B) 3"]})
    assert view["statement_segments"][1] == {"kind": "inline", "value": "\\pi"}
    assert view["option_segments"][0][1] == {"kind": "inline", "value": "3.14"}
    assert view["option_segments"][1] == [{"kind": "text", "value": "B) 3"}]
