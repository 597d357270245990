import pytest

from educlaw.profiles import build_profile, parse_actor_choice, portal_path


@pytest.mark.parametrize(
    "choice,actor_type",
    [("1", "student"), ("2", "family"), (" 3 ", "teacher")],
)
def test_parse_actor_choice(choice, actor_type):
    assert parse_actor_choice(choice) == actor_type


@pytest.mark.parametrize("choice", ["", "4", "student"])
def test_parse_actor_choice_rejects(choice):
    with pytest.raises(ValueError, match="无效选择"):
        parse_actor_choice(choice)


def test_student_profile_contains_name_and_grade():
    profile = build_profile("小明", "student", "五年级", "")
    assert profile.startswith("# 学生档案")
    assert "- 姓名: 小明" in profile
    assert "- 年级: 五年级" in profile


def test_family_profile_contains_parent_name():
    profile = build_profile("王女士", "family", "", "")
    assert profile.startswith("# 家庭档案")
    assert "- 家长姓名: 王女士" in profile


def test_teacher_profile_contains_subject():
    profile = build_profile("李老师", "teacher", "", "数学")
    assert profile.startswith("# 教师档案")
    assert "- 科目: 数学" in profile


def test_unknown_actor_profile_fallback():
    assert build_profile("Ann", "robot", "", "") == "# Profile\n\nName: Ann\n"


def test_profiles_end_with_newline_for_every_type():
    for actor_type in ("student", "family", "teacher", "other"):
        assert build_profile("N", actor_type, "g", "s").endswith("\n")


def test_portal_paths_are_distinct_and_absolute():
    paths = [portal_path(t) for t in ("student", "family", "teacher")]
    assert len(set(paths)) == 3
    assert all(p.startswith("/") for p in paths)
    assert portal_path("family") == "/parent"


def test_portal_path_unknown():
    with pytest.raises(ValueError):
        portal_path("robot")