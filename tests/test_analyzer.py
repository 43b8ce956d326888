import analyzer
import skills
from analyzer import (
    FALLBACK_STRUCTURAL_SUGGESTION,
    GENERIC_SUGGESTIONS,
    SUGGESTION_COUNT,
    AnalysisResult,
    analyze_resume,
    calculate_ats_score,
    calculate_match_percentage,
    generate_suggestions,
    inspect_resume_structure,
    match_skills,
    pad_suggestions,
    round_half_up,
    score_resume,
)

FIXED_ALIASES = {
    "Node": ["Node.js", "NodeJS"],
    "SQL": ["PostgreSQL", "MySQL"],
}

WELL_FORMED_RESUME = (
    "Summary\nExperience\nEducation\nSkills\n"
    "jane@example.com\n+1 415 555 0134\n"
    + " ".join(["delivery"] * 320)
)


# --- matching -------------------------------------------------------------------

def test_backend_scenario_against_fixed_synonym_table():
    matched, missing = match_skills(
        "Node.js and PostgreSQL experience", ["Node", "SQL", "Docker"], FIXED_ALIASES
    )
    assert matched == ["Node", "SQL"]
    assert missing == ["Docker"]
    assert calculate_match_percentage(matched, matched + missing) == 67


def test_backend_scenario_without_synonyms():
    matched, missing = match_skills("Node.js and PostgreSQL experience", ["Node", "SQL", "Docker"], {})
    assert matched == ["Node"]
    assert missing == ["SQL", "Docker"]
    assert calculate_match_percentage(matched, matched + missing) == 33


def test_dotted_framework_names_contain_the_base_name():
    matched, missing = match_skills(
        "Shipped React.js and Vue.js apps on an Express.js API", ["React", "Vue", "Express", "Angular"], {}
    )
    assert matched == ["React", "Vue", "Express"]
    assert missing == ["Angular"]


def test_dotted_skill_names_still_match_themselves():
    matched, _ = match_skills("Backend in node.js, frontend in ASP.NET", ["Node.js", "ASP.NET"], {})
    assert matched == ["Node.js", "ASP.NET"]


def test_everyday_words_are_not_skills():
    matched, missing = match_skills("I like to go hiking and work in a swift manner", ["Go", "Swift"])
    assert matched == []
    assert missing == ["Go", "Swift"]


def test_ambiguous_spellings_match_with_exact_case():
    matched, _ = match_skills("Services written in Go, apps in Swift, models in R", ["Go", "Swift", "R"])
    assert matched == ["Go", "Swift", "R"]
    matched, _ = match_skills("Services written in golang", ["Go"])
    assert matched == ["Go"]


def test_synonyms_are_only_recognised_when_registered():
    matched, missing = match_skills("Ten years of PostgreSQL tuning", ["SQL"], {})
    assert matched == []
    assert missing == ["SQL"]


def test_matching_ignores_case_and_whitespace():
    matched, _ = match_skills("worked with   MACHINE\n\n learning daily", ["Machine Learning"], {})
    assert matched == ["Machine Learning"]


def test_abbreviation_does_not_match_inside_longer_word():
    matched, missing = match_skills("Parsed JSON payloads", ["JavaScript"], {"JavaScript": ["JS"]})
    assert matched == []
    assert missing == ["JavaScript"]


def test_abbreviation_matches_as_whole_word():
    matched, _ = match_skills("Front end work in JS and CSS", ["JavaScript"], {"JavaScript": ["JS"]})
    assert matched == ["JavaScript"]


def test_default_table_on_sample_resume(sample_resume):
    role = skills.get_role("backend-developer")
    matched, missing = match_skills(sample_resume, role.required_skills)
    assert matched == ["Node.js", "Python", "SQL", "REST APIs", "Docker", "Git", "AWS"]
    assert missing == ["MongoDB", "Redis", "Microservices"]


def test_partition_covers_required_skills_for_every_role(sample_resume):
    for role in skills.list_roles():
        required = list(role.required_skills)
        matched, missing = match_skills(sample_resume, required)
        assert set(matched) | set(missing) == set(required)
        assert not set(matched) & set(missing)
        assert matched == [skill for skill in required if skill in matched]
        assert missing == [skill for skill in required if skill in missing]


def test_missing_skills_keep_declaration_order():
    _, missing = match_skills("Python only", ["Redis", "Python", "Kafka", "AWS"], {})
    assert missing == ["Redis", "Kafka", "AWS"]


def test_empty_inputs():
    assert match_skills("Python", [], {}) == ([], [])
    assert match_skills("", ["Python", "SQL"], {}) == ([], ["Python", "SQL"])
    assert match_skills("   \n ", ["Python"], {}) == ([], ["Python"])


def test_required_skills_are_deduplicated_case_insensitively():
    matched, missing = match_skills("python", ["Python", "python", " PYTHON "], {})
    assert matched == ["Python"]
    assert missing == []


def test_matching_is_deterministic(sample_resume):
    role = skills.get_role("fullstack-developer")
    first = match_skills(sample_resume, role.required_skills)
    assert all(match_skills(sample_resume, role.required_skills) == first for _ in range(3))


# --- scoring --------------------------------------------------------------------

def test_round_half_up():
    assert round_half_up(0.5) == 1
    assert round_half_up(2.5) == 3
    assert round_half_up(66.666) == 67
    assert round_half_up(-2.5) == -2


def test_match_percentage_guards_empty_required():
    assert calculate_match_percentage([], []) == 0
    assert calculate_match_percentage(["a"], ["a", "b", "c"]) == 33
    assert calculate_match_percentage(["a", "b"], ["a", "b"]) == 100


def test_empty_resume_scores_zero():
    assert calculate_ats_score("", 0, 0) == 0
    assert score_resume([], [], "") == (0, 0)


def test_scores_are_bounded_integers(sample_resume):
    for text in ("", "x", sample_resume, sample_resume * 40, "\t|||||****" * 50):
        for matched_count, required_count in ((0, 0), (0, 5), (5, 5)):
            ats = calculate_ats_score(text, matched_count, required_count)
            assert isinstance(ats, int)
            assert 0 <= ats <= 100


def test_ats_is_clamped_with_oversized_weights(sample_resume):
    weights = {name: 1000.0 for name in analyzer.ATS_SIGNAL_WEIGHTS}
    assert calculate_ats_score(sample_resume, 3, 4, weights) == 100


def test_keyword_signal_weight():
    assert calculate_ats_score("some resume text", 1, 4, {"keywords": 100}) == 25
    assert calculate_ats_score("some resume text", 0, 0, {"keywords": 100}) == 0


def test_section_signal_is_monotonic():
    weights = {"sections": 100}
    assert calculate_ats_score("Experience\nAcme", 0, 0, weights) == 25
    assert calculate_ats_score("Experience\nEducation\nAcme", 0, 0, weights) == 50
    assert calculate_ats_score("Experience\nEducation\nSkills\nSummary", 0, 0, weights) == 100


def test_contact_signal():
    weights = {"contact": 100}
    assert calculate_ats_score("Worked 2019 - 2023", 0, 0, weights) == 0
    assert calculate_ats_score("jane@example.com", 0, 0, weights) == 50
    assert calculate_ats_score("jane@example.com\n+1 415 555 0134", 0, 0, weights) == 100


def test_formatting_artifacts_lower_the_score():
    weights = {"formatting": 100}
    assert calculate_ats_score("Plain clean resume", 0, 0, weights) == 100
    assert calculate_ats_score("Plain\tclean resume", 0, 0, weights) == 75
    assert calculate_ats_score("Name\tTitle\n| a | b | c |\n****\n�", 0, 0, weights) == 0


def test_length_goodness():
    assert analyzer._length_goodness(0) == 0.0
    assert analyzer._length_goodness(150) == 0.5
    assert analyzer._length_goodness(300) == 1.0
    assert analyzer._length_goodness(1000) == 1.0
    assert analyzer._length_goodness(1500) == 0.75
    assert analyzer._length_goodness(5000) == 0.5


def test_inspect_sample_resume(sample_resume):
    structure = inspect_resume_structure(sample_resume)
    assert structure.sections_found == ["experience", "education", "skills", "summary"]
    assert structure.sections_missing == []
    assert structure.has_email and structure.has_phone
    assert structure.artifacts == []


def test_load_ats_weights_overrides(tmp_path):
    path = tmp_path / "weights.json"
    path.write_text('{"keywords": 40, "formatting": 0}')
    weights = analyzer.load_ats_weights(str(path))
    assert weights["keywords"] == 40.0
    assert weights["formatting"] == 0.0
    assert weights["sections"] == analyzer.ATS_SIGNAL_WEIGHTS["sections"]


def test_load_ats_weights_rejects_bad_values(tmp_path):
    path = tmp_path / "weights.json"
    for content in ('{"keywords": -1}', '{"vibes": 10}', '{"keywords": "lots"}'):
        path.write_text(content)
        try:
            analyzer.load_ats_weights(str(path))
        except ValueError:
            continue
        raise AssertionError(f"{content} should have been rejected")


# --- suggestions ----------------------------------------------------------------

def test_missing_skills_come_first_in_declaration_order(sample_resume):
    suggestions = generate_suggestions(["MongoDB", "Redis", "Microservices", "Kafka"], sample_resume, 90)
    assert len(suggestions) == SUGGESTION_COUNT
    assert "MongoDB" in suggestions[0]
    assert "Redis" in suggestions[1]
    assert "Microservices" in suggestions[2]
    assert not any("Kafka" in suggestion for suggestion in suggestions)


def test_low_ats_adds_structural_advice():
    suggestions = generate_suggestions(["MongoDB", "Redis", "Microservices"], "", 40)
    assert len(suggestions) == SUGGESTION_COUNT
    assert suggestions[3].startswith("Add clearly labelled section headings")
    assert "300 words" in suggestions[4]


def test_structural_advice_survives_many_missing_skills():
    missing = ["A1", "B2", "C3", "D4", "E5", "F6"]
    suggestions = generate_suggestions(missing, "", 10)
    skill_mentions = [s for s in suggestions if any(skill in s for skill in missing)]
    assert len(skill_mentions) == 3
    assert len(suggestions) - len(skill_mentions) >= 1


def test_fallback_structural_advice_when_no_signal_fails():
    suggestions = generate_suggestions([], WELL_FORMED_RESUME, 50)
    assert suggestions[0] == FALLBACK_STRUCTURAL_SUGGESTION


def test_generic_padding_when_nothing_specific(sample_resume):
    assert generate_suggestions([], sample_resume, 95) == GENERIC_SUGGESTIONS[:SUGGESTION_COUNT]


def test_pad_suggestions_drops_duplicates_and_blanks():
    padded = pad_suggestions(["Fix A", "fix a", "", "  ", "Fix B"])
    assert padded[:2] == ["Fix A", "Fix B"]
    assert len(padded) == SUGGESTION_COUNT
    assert len({s.lower() for s in padded}) == SUGGESTION_COUNT


def test_pad_suggestions_caps_long_lists():
    padded = pad_suggestions([f"Tip {i}" for i in range(9)])
    assert padded == [f"Tip {i}" for i in range(SUGGESTION_COUNT)]


# --- pipeline -------------------------------------------------------------------

def test_analyze_resume_end_to_end(sample_resume):
    role = skills.get_role("backend-developer")
    result = analyze_resume(sample_resume, role.required_skills)

    assert result.match_percentage == 70
    assert result.matched_skills == ("Node.js", "Python", "SQL", "REST APIs", "Docker", "Git", "AWS")
    assert result.missing_skills == ("MongoDB", "Redis", "Microservices")
    assert len(result.suggestions) == SUGGESTION_COUNT
    assert "MongoDB" in result.suggestions[0]
    assert result.is_ai_powered is False
    assert result.detailed_feedback is None


def test_analyze_resume_handles_empty_inputs():
    result = analyze_resume("", [])
    assert (result.match_percentage, result.ats_score) == (0, 0)
    assert result.matched_skills == () and result.missing_skills == ()
    assert len(result.suggestions) == SUGGESTION_COUNT

    result = analyze_resume("", ["Python", "SQL"])
    assert result.match_percentage == 0
    assert result.missing_skills == ("Python", "SQL")
    assert len(set(result.suggestions)) == SUGGESTION_COUNT


def test_analysis_result_dict_round_trip(sample_resume):
    result = analyze_resume(sample_resume, skills.get_role("devops-engineer").required_skills)
    data = result.to_dict()
    assert set(data) == {
        "match_percentage",
        "ats_score",
        "matched_skills",
        "missing_skills",
        "suggestions",
        "detailed_feedback",
        "is_ai_powered",
    }
    assert AnalysisResult.from_dict(data) == result
