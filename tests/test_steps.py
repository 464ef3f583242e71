"""
Tests for the reusable step helpers.
"""
import pytest

from dialogs.prompts import TextPrompt, min_length
from dialogs.steps import (
    advance, branch_on_answer, capitalize_first, collect_if_missing, end_with,
    initialize_profile, is_affirmative, persist_result,
)
from models.schemas import DialogTurnStatus, UserProfile


async def return_result(step):
    return step.end_dialog(step.result)


class TestAffirmative:

    @pytest.mark.parametrize("answer", ["yes", "YES", "Yes", " yEs ", "yes\n"])
    def test_affirmative_any_case(self, answer):
        assert is_affirmative(answer)

    @pytest.mark.parametrize("answer", ["no", "y", "yess", "", None, 1])
    def test_not_affirmative(self, answer):
        assert not is_affirmative(answer)

    def test_custom_token(self):
        assert is_affirmative("sure", token="SURE")
        assert not is_affirmative("yes", token="SURE")


class TestCapitalizeFirst:

    def test_first_letter_only(self):
        assert capitalize_first("alice") == "Alice"
        assert capitalize_first("mcDonald") == "McDonald"

    def test_empty(self):
        assert capitalize_first("") == ""


class TestCollectIfMissing:

    @pytest.mark.asyncio
    async def test_prompts_when_field_missing(self, dialogs, harness, profile_accessor):
        dialogs.register_dialog(
            "collect",
            [collect_if_missing(profile_accessor, "name", "name", "Name?"), return_result],
            [TextPrompt("name")],
        )
        result = await harness.begin("collect")
        assert result.status == DialogTurnStatus.WAITING
        assert harness.drain() == ["Name?"]

    @pytest.mark.asyncio
    async def test_skips_prompt_and_passes_existing_value(self, dialogs, harness, profile_accessor):
        await profile_accessor.set("conv-1", UserProfile(name="Bob"))
        dialogs.register_dialog(
            "collect",
            [collect_if_missing(profile_accessor, "name", "name", "Name?"), return_result],
            [TextPrompt("name")],
        )
        result = await harness.begin("collect")
        assert result.status == DialogTurnStatus.COMPLETE
        assert result.result == "Bob"
        assert harness.drain() == []

    @pytest.mark.asyncio
    async def test_repeat_runs_do_not_reprompt(self, dialogs, harness, profile_accessor):
        async def save(step):
            await persist_result(profile_accessor, step, "name")
            return step.end_dialog(step.result)

        dialogs.register_dialog(
            "collect",
            [collect_if_missing(profile_accessor, "name", "name", "Name?"), save],
            [TextPrompt("name")],
        )
        await harness.begin("collect")
        await harness.send("carol")
        harness.drain()

        result = await harness.begin("collect")
        assert result.result == "carol"
        assert harness.drain() == []


class TestPersistResult:

    @pytest.mark.asyncio
    async def test_guarded_write_keeps_existing_value(self, dialogs, harness, profile_accessor):
        await profile_accessor.set("conv-1", UserProfile(name="Bob"))

        async def ask(step):
            return step.prompt("p", "?")

        async def save(step):
            profile = await persist_result(profile_accessor, step, "name")
            return step.end_dialog(profile.name)

        dialogs.register_dialog("save", [ask, save], [TextPrompt("p")])
        await harness.begin("save")
        result = await harness.send("Carol")
        assert result.result == "Bob"
        assert (await profile_accessor.get("conv-1")).name == "Bob"

    @pytest.mark.asyncio
    async def test_transform_applied_on_write(self, dialogs, harness, profile_accessor):
        async def ask(step):
            return step.prompt("p", "?")

        async def save(step):
            await persist_result(profile_accessor, step, "name", transform=capitalize_first)
            return step.end_dialog()

        dialogs.register_dialog("save", [ask, save], [TextPrompt("p")])
        await harness.begin("save")
        await harness.send("dave")
        assert (await profile_accessor.get("conv-1")).name == "Dave"

    @pytest.mark.asyncio
    async def test_no_result_writes_nothing(self, dialogs, harness, profile_accessor):
        async def save(step):
            await persist_result(profile_accessor, step, "phone_number")
            return step.end_dialog()

        dialogs.register_dialog("save", [save])
        await harness.begin("save")
        assert await profile_accessor.get("conv-1") is None


class TestBranchOnAnswer:

    def build(self, dialogs, profile_accessor, field="replay"):
        async def ask(step):
            return step.prompt("yn", "Yes or no?")

        branch = branch_on_answer(
            profile_accessor,
            on_yes=end_with("happy path", result="yes-branch"),
            on_no=end_with("detour", result="no-branch"),
            field=field,
        )
        dialogs.register_dialog("branch", [ask, branch], [TextPrompt("yn", min_length(1))])

    @pytest.mark.asyncio
    async def test_affirmative_routes_to_happy_path(self, dialogs, harness, profile_accessor):
        self.build(dialogs, profile_accessor)
        await harness.begin("branch")
        harness.drain()
        result = await harness.send("Yes")
        assert result.result == "yes-branch"
        assert harness.drain() == ["happy path"]

    @pytest.mark.asyncio
    async def test_anything_else_routes_to_detour(self, dialogs, harness, profile_accessor):
        self.build(dialogs, profile_accessor)
        await harness.begin("branch")
        harness.drain()
        result = await harness.send("nope")
        assert result.result == "no-branch"
        assert harness.drain() == ["detour"]

    @pytest.mark.asyncio
    async def test_answer_persisted_once(self, dialogs, harness, profile_accessor):
        self.build(dialogs, profile_accessor)
        await harness.begin("branch")
        await harness.send("no")
        await harness.begin("branch")
        result = await harness.send("yes")

        assert (await profile_accessor.get("conv-1")).replay == "no"
        assert result.result == "yes-branch"

    @pytest.mark.asyncio
    async def test_without_field_nothing_is_stored(self, dialogs, harness, profile_accessor):
        self.build(dialogs, profile_accessor, field=None)
        await harness.begin("branch")
        await harness.send("yes")
        assert await profile_accessor.get("conv-1") is None

    @pytest.mark.asyncio
    async def test_falls_back_to_stored_answer(self, dialogs, harness, profile_accessor):
        await profile_accessor.set("conv-1", UserProfile(replay="YES"))
        branch = branch_on_answer(
            profile_accessor,
            on_yes=end_with(result="yes-branch"),
            on_no=end_with(result="no-branch"),
        )
        dialogs.register_dialog("branch", [branch])
        result = await harness.begin("branch")
        assert result.result == "yes-branch"


class TestFlowHelpers:

    @pytest.mark.asyncio
    async def test_end_with_emits_in_order(self, dialogs, harness):
        dialogs.register_dialog("bye", [end_with("one", "two", "three")])
        result = await harness.begin("bye")
        assert result.status == DialogTurnStatus.COMPLETE
        assert harness.drain() == ["one", "two", "three"]

    @pytest.mark.asyncio
    async def test_advance_passes_result_through(self, dialogs, harness):
        async def start(step):
            return step.next("carried")

        dialogs.register_dialog("pass", [start, advance, return_result])
        result = await harness.begin("pass")
        assert result.result == "carried"

    @pytest.mark.asyncio
    async def test_initialize_profile_creates_empty(self, dialogs, harness, profile_accessor):
        dialogs.register_dialog("init", [initialize_profile(profile_accessor), return_result])
        await harness.begin("init")
        assert await profile_accessor.get("conv-1") == UserProfile()

    @pytest.mark.asyncio
    async def test_initialize_profile_seeds_from_options(self, dialogs, harness, profile_accessor):
        dialogs.register_dialog("init", [initialize_profile(profile_accessor), return_result])
        await harness.begin("init", {"user_profile": {"name": "Erin", "phone_number": "5551234567"}})
        profile = await profile_accessor.get("conv-1")
        assert profile.name == "Erin"
        assert profile.phone_number == "5551234567"

    @pytest.mark.asyncio
    async def test_initialize_profile_keeps_existing(self, dialogs, harness, profile_accessor):
        await profile_accessor.set("conv-1", UserProfile(name="Frank"))
        dialogs.register_dialog("init", [initialize_profile(profile_accessor), return_result])
        await harness.begin("init", {"user_profile": {"name": "Erin"}})
        assert (await profile_accessor.get("conv-1")).name == "Frank"
