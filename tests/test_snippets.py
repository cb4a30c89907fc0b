from docsearch.search.snippets import extract_snippet, highlight


def test_snippet_window_starts_a_third_before_match():
    text = "x" * 600 + "needle" + "y" * 394
    assert len(text) == 1000
    snippet = extract_snippet(text, "needle", 500)
    assert snippet == "..." + text[434:934] + "..."


def test_snippet_without_trailing_cut_has_no_suffix():
    text = "x" * 600 + "needle" + "y" * 94
    snippet = extract_snippet(text, "needle", 500)
    assert snippet == "..." + text[434:]


def test_snippet_uses_earliest_token_match_case_insensitively():
    text = "a" * 300 + "Second" + "b" * 300 + "FIRST" + "c" * 300
    snippet = extract_snippet(text, "first second", 60)
    assert snippet == "..." + text[280:340] + "..."


def test_snippet_without_match_returns_head_verbatim():
    text = "z" * 800
    assert extract_snippet(text, "needle", 500) == "z" * 500


def test_snippet_of_empty_text_is_empty():
    assert extract_snippet("", "needle") == ""


def test_snippet_near_start_has_no_prefix():
    text = "needle in a short text"
    assert extract_snippet(text, "needle") == text


def test_highlight_wraps_each_token_case_insensitively():
    assert highlight("Cats and dogs", "cat dog") == "<mark>Cat</mark>s and <mark>dog</mark>s"


def test_highlight_wraps_every_occurrence():
    assert highlight("api API Api", "Api") == (
        "<mark>api</mark> <mark>API</mark> <mark>Api</mark>"
    )


def test_highlight_skips_tokens_of_two_chars_or_less():
    assert highlight("go to an API", "go to an") == "go to an API"


def test_highlight_never_nests_markers():
    result = highlight("Category and cat", "category cat")
    assert result == "<mark>Category</mark> and <mark>cat</mark>"


def test_highlight_does_not_touch_marker_tags():
    assert highlight("cat", "cat mark") == "<mark>cat</mark>"


def test_highlight_treats_tokens_literally():
    assert highlight("costs $5.00 (net)", "$5.00 (net)") == (
        "costs <mark>$5.00</mark> <mark>(net)</mark>"
    )


def test_highlight_escapes_literal_tags_in_text():
    result = highlight("see <mark> tag then cat", "tag cat")
    assert result == "see &lt;mark&gt; <mark>tag</mark> then <mark>cat</mark>"


def test_highlight_escapes_markup_inside_matches():
    assert highlight("a<b>&c", "<b>") == "a<mark>&lt;b&gt;</mark>&amp;c"
