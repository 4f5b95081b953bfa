import pytest

from directory_fakes import (
    GUILD_ID,
    build_guild,
    category,
    everyone_denied,
    member_allowed,
    text,
    voice,
)

from gradecord.datatypes.discord_datatypes import ChannelID, UserID
from gradecord.directory.categories import CategoryScheme
from gradecord.directory.channel_projector import ChannelProjector, project_channels


def test_projects_only_channels_under_recognized_categories():
    records = project_channels(build_guild(), GUILD_ID)

    assert set(records) == {"study-hall", "general-chat", "open-mic"}


def test_voice_and_text_halves_merge_into_one_record():
    record = project_channels(build_guild(), GUILD_ID)["study-hall"]

    assert record.name == "Study Hall"
    assert record.category_level == "A"
    assert record.voice_id == ChannelID(200)
    assert record.text_id == ChannelID(201)
    assert record.is_voice and record.is_text
    assert record.is_public is False
    assert record.is_restricted_audience is False


def test_members_are_users_explicitly_allowed_to_view():
    record = project_channels(build_guild(), GUILD_ID)["study-hall"]

    # role 500 is allowed and user 103 is denied; neither counts as a member
    assert record.members == frozenset({UserID(101), UserID(102)})


def test_restricted_category_sets_audience_flag_and_level():
    record = project_channels(build_guild(), GUILD_ID)["general-chat"]

    assert record.is_restricted_audience is True
    assert record.category_level == "B"
    assert record.is_text and not record.is_voice
    assert record.voice_id is None
    assert record.members == frozenset({UserID(104)})


def test_voice_without_connect_deny_is_public():
    record = project_channels(build_guild(), GUILD_ID)["open-mic"]

    assert record.is_public is True
    assert record.is_voice and not record.is_text
    assert record.members == frozenset()


def test_view_only_deny_keeps_voice_public():
    listing = [
        category(11, "A-Grade Voice"),
        voice(300, "Quiet Room", 11, everyone_denied(connect=False)),
    ]
    assert project_channels(listing, GUILD_ID)["quiet-room"].is_public is True


def test_projection_is_deterministic_and_leaves_input_untouched():
    listing = build_guild()
    snapshot = list(listing)

    first = project_channels(listing, GUILD_ID)
    second = project_channels(listing, GUILD_ID)

    assert first == second
    assert listing == snapshot


def test_ambiguous_parent_is_excluded():
    listing = [
        category(10, "A-Grade Text"),
        category(10, "B-Grade Text"),
        text(300, "duplicate-parent", 10, member_allowed(101)),
    ]
    assert project_channels(listing, GUILD_ID) == {}


def test_similarly_named_category_is_not_recognized():
    listing = [
        category(40, "E-Grade Text"),
        category(41, "A-Grade Textual"),
        text(300, "one", 40),
        text(301, "two", 41),
    ]
    assert project_channels(listing, GUILD_ID) == {}


def test_custom_scheme_levels_and_marker():
    scheme = CategoryScheme(levels=("S",), restricted_marker="Vanguard")
    listing = [
        category(50, "S-Grade Vanguard Voice"),
        voice(301, "Ops", 50),
    ]
    record = ChannelProjector(scheme).project(listing, GUILD_ID)["ops"]

    assert record.category_level == "S"
    assert record.is_restricted_audience is True


@pytest.mark.parametrize("levels", [("AA",), ("A", ""), ("-",), (" ",)])
def test_scheme_rejects_levels_that_are_not_single_characters(levels):
    with pytest.raises(ValueError):
        CategoryScheme(levels=levels)
