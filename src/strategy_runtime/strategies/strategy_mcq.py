"""
MCQ (Multiple Choice Question) strategy.

- Presents a prompt with radio (single) or checkbox (multiple) choices.
- Tracks the selection set; any change clears previous feedback.
- Optional shuffled presentation (ui.shuffle); scoring is always by choice id.
- "Check Answer" renders correct/incorrect feedback and per-choice highlighting.

Spec props:
    {"prompt": "...", "choices": [{"id": "c1", "text": "2"}, ...],
     "correct": ["c1", "c2"], "multi": true}
"""

from __future__ import annotations

import json
import random
from enum import Enum
from typing import Any, Mapping

from loguru import logger
from pydantic import BaseModel, ConfigDict

from ..dom import Element, Event
from ..errors import StrategyRuntimeError
from ..models import StrategyContext

INPUT_SELECTOR = 'input[type="checkbox"], input[type="radio"]'
CHANGED_EVENT = "qti-interaction-changed"

CHOICE_CORRECT = "choice-correct"
CHOICE_MISSED = "choice-missed"
CHOICE_INCORRECT = "choice-incorrect"
HIGHLIGHT_CLASSES = (CHOICE_CORRECT, CHOICE_MISSED, CHOICE_INCORRECT)


class Choice(BaseModel):
    """One selectable option. ``id`` is unique within the spec."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    id: str
    text: str | None = None
    label: str | None = None
    image: str | None = None

    @property
    def display_text(self) -> str:
        return self.text or self.label or ""


class McqPhase(str, Enum):
    UNSELECTED = "unselected"
    SELECTING = "selecting"
    CHECKED = "checked"


def _parse_choices(props: dict[str, Any]) -> list[Choice]:
    choices = [Choice.model_validate(raw) for raw in props.get("choices") or []]
    seen: set[str] = set()
    for choice in choices:
        if choice.id in seen:
            raise StrategyRuntimeError(f"Duplicate choice id: {choice.id}")
        seen.add(choice.id)
    return choices


def _parse_correct(props: dict[str, Any]) -> list[str]:
    correct = props.get("correct") or []
    if isinstance(correct, str):
        return [correct]
    return [str(c) for c in correct]


class McqStrategy:
    """Multiple choice strategy supporting single and multiple selection."""

    def __init__(self, ctx: StrategyContext, rng: random.Random | None = None):
        self.dom = ctx.mount_point
        self.host_config = ctx.host_config
        self.spec = ctx.spec
        self.props = ctx.spec.props
        self.ui = ctx.spec.ui
        self.choices = _parse_choices(self.props)
        self.correct = _parse_correct(self.props)
        self.is_multiple = bool(self.props.get("multi", False))
        self.selected: set[str] = set()
        self.phase = McqPhase.UNSELECTED
        self.presented: list[Choice] = []
        self.choice_list: Element | None = None
        self.feedback: Element | None = None
        self.rendering_properties: dict[str, Any] = {}
        self._request_resize = ctx.request_resize
        self._rng = rng or random.Random(self.ui.get("seed"))
        self._group = ctx.host_config.response_identifier or "mcq-choice"
        self._inputs: list[Element] = []

        known = {c.id for c in self.choices}
        unknown = [c for c in self.correct if c not in known]
        if unknown:
            logger.warning(f"Correct ids not among choices: {unknown}")

    # =========================================================================
    # Rendering
    # =========================================================================

    def mount(self) -> None:
        logger.debug(f"Mounting MCQ with {len(self.choices)} choices (multi={self.is_multiple})")
        self.render()
        self.attach_event_listeners()

    def render(self) -> None:
        self.dom.clear()
        container = Element("div", class_name="qti-choice-interaction")

        if self.props.get("prompt"):
            container.append_child(Element("div", class_name="qti-prompt", text=self.props["prompt"]))

        self.choice_list = container.append_child(Element("div", class_name="qti-choice-list"))
        self.presented = self.shuffle(self.choices) if self.ui.get("shuffle") else list(self.choices)
        for choice in self.presented:
            self.choice_list.append_child(self.create_choice_element(choice))

        buttons = container.append_child(Element("div", class_name="qti-button-container"))
        check_button = buttons.append_child(
            Element(
                "button",
                class_name="qti-check-button",
                attributes={"type": "button"},
                text="Check Answer",
            )
        )
        check_button.add_event_listener("click", self._on_check)

        self.dom.append_child(container)

    def create_choice_element(self, choice: Choice) -> Element:
        wrapper = Element(
            "div", class_name="qti-simple-choice", attributes={"data-choice-id": choice.id}
        )
        label = wrapper.append_child(Element("label", class_name="qti-choice-label"))
        input_el = label.append_child(
            Element(
                "input",
                class_name="qti-choice-input",
                attributes={
                    "type": "checkbox" if self.is_multiple else "radio",
                    "name": self._group,
                    "value": choice.id,
                    "id": f"choice-{choice.id}",
                },
            )
        )
        content = label.append_child(
            Element("span", class_name="qti-choice-content", text=choice.display_text)
        )
        if choice.image:
            content.append_child(
                Element("img", class_name="qti-choice-image", attributes={"src": choice.image})
            )

        # The whole wrapper is clickable
        wrapper.style["cursor"] = "pointer"

        def on_click(event: Event) -> None:
            if not input_el.contains(event.target):
                event.prevent_default()
                event.stop_propagation()
                input_el.click()

        wrapper.add_event_listener("click", on_click)
        return wrapper

    def shuffle(self, choices: list[Choice]) -> list[Choice]:
        """Uniform (Fisher-Yates) permutation of a copy of ``choices``."""
        shuffled = list(choices)
        self._rng.shuffle(shuffled)
        return shuffled

    def attach_event_listeners(self) -> None:
        if self.choice_list is None:
            return
        self._inputs = self.choice_list.query_selector_all(INPUT_SELECTOR)
        for input_el in self._inputs:
            input_el.add_event_listener("change", self.handle_choice_change)

    # =========================================================================
    # Selection
    # =========================================================================

    def handle_choice_change(self, event: Event) -> None:
        input_el = event.target
        choice_id = input_el.value

        if self.is_multiple:
            if input_el.checked:
                self.selected.add(choice_id)
            else:
                self.selected.discard(choice_id)
        else:
            self.selected.clear()
            if input_el.checked:
                self.selected.add(choice_id)

        self.phase = McqPhase.SELECTING if self.selected else McqPhase.UNSELECTED
        self.clear_feedback()
        self.fire_interaction_changed()

    def select(self, choice_id: str) -> None:
        """Click the wrapper for ``choice_id`` as a user would."""
        if self.choice_list is None:
            return
        wrapper = self.choice_list.query_selector(f'[data-choice-id="{choice_id}"]')
        if wrapper is None:
            raise KeyError(choice_id)
        wrapper.click()

    def fire_interaction_changed(self) -> None:
        self.dom.dispatch_event(
            Event(
                CHANGED_EVENT,
                {
                    "interaction": self,
                    "responseIdentifier": self.host_config.response_identifier,
                    "valid": self.check_validity(),
                    "value": self.get_response(),
                },
                bubbles=True,
                cancelable=True,
            )
        )

    def selected_ids(self) -> list[str]:
        """Selected ids in declaration order."""
        return [c.id for c in self.choices if c.id in self.selected]

    def get_response(self) -> dict[str, Any]:
        selected = self.selected_ids()
        if self.is_multiple:
            return {"type": "multiple", "choices": selected}
        return {"type": "single", "choice": selected[0] if selected else None}

    def get_state(self) -> dict[str, Any]:
        return {"selectedChoices": self.selected_ids(), "isMultiple": self.is_multiple}

    def set_state(self, state: Any) -> None:
        if not state:
            return
        if isinstance(state, str):
            try:
                state = json.loads(state)
            except json.JSONDecodeError as e:
                logger.warning(f"Ignoring undecodable MCQ state: {e}")
                return
        if not isinstance(state, Mapping):
            logger.warning(f"Ignoring MCQ state of type {type(state).__name__}")
            return

        ids = state.get("selectedChoices", state.get("selectedChoiceIds")) or []
        if isinstance(ids, str):
            ids = [ids]
        known = {c.id for c in self.choices}
        restored = [i for i in ids if isinstance(i, str) and i in known]
        if len(restored) != len(ids):
            logger.warning(f"Ignoring unknown choice ids in state: {[i for i in ids if i not in restored]}")
        if not self.is_multiple and len(restored) > 1:
            logger.warning("Single-select state holds several choices; keeping the first")
            restored = restored[:1]

        self.selected = set(restored)
        if self.phase is not McqPhase.CHECKED:
            self.phase = McqPhase.SELECTING if self.selected else McqPhase.UNSELECTED
        self.update_ui()

    def update_ui(self) -> None:
        for input_el in self._inputs:
            input_el.checked = input_el.value in self.selected

    # =========================================================================
    # Validity and scoring
    # =========================================================================

    def check_validity(self) -> bool:
        return len(self.selected) > 0

    def get_custom_validity(self) -> str:
        if not self.selected:
            return "Please select at least one option"
        return ""

    def check_answer(self) -> bool:
        """Single: exactly one selected and it is correct. Multiple: exact set match."""
        correct = set(self.correct)
        if not self.is_multiple:
            return len(self.selected) == 1 and next(iter(self.selected)) in correct
        return len(self.selected) == len(correct) and self.selected == correct

    def feedback_text(self, is_correct: bool) -> str:
        if is_correct:
            return "Correct! Well done."
        text = "Not quite right. "
        if not self.selected:
            return text + "Please select an answer."
        by_id = {c.id: c.display_text for c in self.choices}
        if not self.is_multiple:
            first = self.correct[0] if self.correct else ""
            return text + f"The correct answer is: {by_id.get(first, first)}."
        names = ", ".join(by_id.get(cid, cid) for cid in self.correct)
        return text + f"The correct answers are: {names}."

    # =========================================================================
    # Feedback
    # =========================================================================

    def _on_check(self, event: Event) -> None:
        is_correct = self.show_feedback()
        oncheck = self.host_config.oncheck
        if callable(oncheck):
            oncheck(is_correct)

    def show_feedback(self) -> bool:
        """Render feedback and highlighting. Returns whether the answer is correct."""
        is_correct = self.check_answer()
        feedback = self.feedback or self._create_feedback_element()
        feedback.clear()
        if is_correct:
            feedback.class_name = "qti-feedback qti-feedback-correct"
            icon = "✓"
        else:
            feedback.class_name = "qti-feedback qti-feedback-incorrect"
            icon = "✗"
        feedback.append_child(Element("div", class_name="feedback-icon", text=icon))
        feedback.append_child(
            Element("div", class_name="feedback-text", text=self.feedback_text(is_correct))
        )

        self.highlight_choices()
        self.phase = McqPhase.CHECKED
        self._update_feedback_flag()
        self._request_resize()
        return is_correct

    def _create_feedback_element(self) -> Element:
        self.feedback = Element("div", class_name="qti-feedback")
        container = self.dom.query_selector(".qti-choice-interaction") or self.dom
        container.append_child(self.feedback)
        return self.feedback

    def clear_feedback(self) -> None:
        if self.feedback is not None and self.feedback.children:
            self.feedback.class_name = "qti-feedback"
            self.feedback.clear()
            self._request_resize()

        for wrapper in self.dom.query_selector_all(".qti-simple-choice"):
            wrapper.remove_class(*HIGHLIGHT_CLASSES)
        self._update_feedback_flag()

    def highlight_choices(self) -> None:
        correct = set(self.correct)
        for wrapper in self.dom.query_selector_all(".qti-simple-choice"):
            wrapper.remove_class(*HIGHLIGHT_CLASSES)
            choice_id = wrapper.get_attribute("data-choice-id")
            if choice_id in correct:
                wrapper.add_class(CHOICE_CORRECT if choice_id in self.selected else CHOICE_MISSED)
            elif choice_id in self.selected:
                wrapper.add_class(CHOICE_INCORRECT)

    def _update_feedback_flag(self) -> None:
        visible = self.feedback is not None and bool(self.feedback.children)
        self.dom.set_attribute("data-feedback-visible", "true" if visible else "false")

    # =========================================================================
    # Host hooks
    # =========================================================================

    def set_rendering_properties(self, properties: dict[str, Any]) -> None:
        logger.debug(f"MCQ rendering properties updated: {properties}")
        self.rendering_properties = dict(properties or {})

    def dispose(self) -> None:
        for input_el in self._inputs:
            input_el.remove_event_listener("change", self.handle_choice_change)
        self._inputs = []
        self.dom.clear()
        self.choice_list = None
        self.feedback = None
        self.selected.clear()
        self.phase = McqPhase.UNSELECTED


def create(ctx: StrategyContext) -> McqStrategy:
    """Create a new MCQ strategy instance."""
    return McqStrategy(ctx)
