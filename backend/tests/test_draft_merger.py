from origo.services.draft_merger import merge_drafts, normalize_heading, split_sections


def test_merge_appends_only_missing_sections():
    primary = "## Overview\nA\n## Scope\nB"
    secondary = "## Scope\nC\n## Budget\nD"

    assert merge_drafts(primary, secondary) == "## Overview\nA\n## Scope\nB\n\n## Budget\nD"


def test_merge_is_idempotent():
    primary = "## Overview\nA\n## Scope\nB"
    secondary = "## Scope\nC\n## Budget\nD\n## Risks\nE\n"

    once = merge_drafts(primary, secondary)
    assert merge_drafts(once, secondary) == once


def test_merge_returns_primary_unchanged_when_nothing_new():
    primary = "## Overview\nA\n\n"
    assert merge_drafts(primary, "## overview\nother text") == primary


def test_headings_match_after_normalization():
    primary = "## Key Deliverables!\nA"
    secondary = "## key-deliverables\nB\n##   KEY DELIVERABLES ##\nC"

    assert merge_drafts(primary, secondary) == primary


def test_secondary_preamble_and_empty_headings_are_dropped():
    primary = "## Overview\nA"
    secondary = "Intro text\n## ***\nnoise\n## Timeline\nT"

    assert merge_drafts(primary, secondary) == "## Overview\nA\n\n## Timeline\nT"


def test_duplicate_headings_within_one_draft_are_kept():
    primary = "## Notes\n1\n## Notes\n2"
    secondary = "## Risks\nR\n## Risks\nS"

    merged = merge_drafts(primary, secondary)
    assert merged.count("## Notes") == 2
    assert merged.count("## Risks") == 2


def test_deeper_headings_stay_inside_their_section():
    sections = split_sections("## Scope\n### In\nx\n### Out\ny\n## Budget\nz\n")

    assert [s.heading for s in sections] == ["Scope", "Budget"]
    assert "### Out" in sections[0].text


def test_text_before_first_heading_is_its_own_section():
    sections = split_sections("preamble\n## One\nbody")

    assert sections[0].heading is None
    assert sections[0].text == "preamble\n"


def test_normalize_heading_keeps_unicode_letters():
    assert normalize_heading("Périmètre & Budget") == "périmètrebudget"
    assert normalize_heading("1. Présentation") == "1présentation"
    assert normalize_heading("---") == ""
