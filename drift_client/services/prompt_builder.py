from __future__ import annotations

from dataclasses import dataclass, field, fields
from typing import Any, Callable, List, Mapping, Optional, Protocol, Union, runtime_checkable

from drift_client.schemas.context import Context

DEFAULT_SYSTEM_PROMPT = "You are a helpful assistant."


@dataclass(frozen=True)
class TemplateContext:
    """Finalized inputs handed to a custom system-prompt template."""

    system_prompt: str
    branch_topic: str
    facts: List[dict[str, str]]
    other_topics: List[str]


@runtime_checkable
class PromptTemplate(Protocol):
    """Strategy that renders the system prompt from a template context."""

    def render(self, ctx: TemplateContext) -> str:
        """Return the full system prompt."""


@dataclass(frozen=True)
class CallableTemplate:
    """Adapts a plain function to the PromptTemplate interface."""

    func: Callable[[TemplateContext], str]

    def render(self, ctx: TemplateContext) -> str:
        return self.func(ctx)


@dataclass(frozen=True)
class PromptOptions:
    """What to include when building a prompt for a branch."""

    system_prompt: str = DEFAULT_SYSTEM_PROMPT
    include_other_topics: bool = True
    include_facts: bool = True
    facts_from_all_branches: bool = False
    template: Optional[PromptTemplate] = None

    def __post_init__(self) -> None:
        if self.template is not None and not isinstance(self.template, PromptTemplate):
            if not callable(self.template):
                raise TypeError("template must be a PromptTemplate or a callable")
            object.__setattr__(self, "template", CallableTemplate(self.template))


PromptOptionsInput = Union[PromptOptions, str, Mapping[str, Any], None]


@dataclass(frozen=True)
class BuiltPrompt:
    """System prompt plus message list ready for an LLM call."""

    system: str
    messages: List[dict[str, str]] = field(default_factory=list)

    def as_dict(self) -> dict[str, Any]:
        return {"system": self.system, "messages": [dict(item) for item in self.messages]}


def resolve_options(value: PromptOptionsInput) -> PromptOptions:
    """Normalize the accepted option forms into one PromptOptions.

    A bare string is the legacy form and sets only the system prompt.
    """

    if value is None:
        return PromptOptions()
    if isinstance(value, PromptOptions):
        return value
    if isinstance(value, str):
        return PromptOptions(system_prompt=value)
    if isinstance(value, Mapping):
        known = {item.name for item in fields(PromptOptions)}
        unknown = sorted(set(value) - known)
        if unknown:
            raise TypeError(f"Unknown prompt options: {', '.join(unknown)}")
        return PromptOptions(**dict(value))
    raise TypeError(f"Unsupported prompt options type: {type(value).__name__}")


class PromptBuilder:
    """Compose a system prompt and message list from branch context."""

    def build(self, context: Context, options: PromptOptionsInput = None) -> BuiltPrompt:
        opts = resolve_options(options)
        facts = self._select_facts(context, opts)
        other_topics = self._select_other_topics(context, opts)

        if opts.template is not None:
            system = opts.template.render(
                TemplateContext(
                    system_prompt=opts.system_prompt,
                    branch_topic=context.branch_topic,
                    facts=facts,
                    other_topics=other_topics,
                )
            )
        else:
            system = self._render_default(opts, context.branch_topic, facts, other_topics)

        messages = [
            {"role": message.role, "content": message.content} for message in context.messages
        ]
        return BuiltPrompt(system=system, messages=messages)

    @staticmethod
    def _select_facts(context: Context, opts: PromptOptions) -> List[dict[str, str]]:
        if not opts.include_facts:
            return []
        return [
            {"key": fact.key, "value": fact.value}
            for fact_set in context.all_facts
            if opts.facts_from_all_branches or fact_set.is_current
            for fact in fact_set.facts
        ]

    @staticmethod
    def _select_other_topics(context: Context, opts: PromptOptions) -> List[str]:
        if not opts.include_other_topics:
            return []
        return [fact_set.branch_topic for fact_set in context.all_facts if not fact_set.is_current]

    @staticmethod
    def _render_default(
        opts: PromptOptions,
        branch_topic: str,
        facts: List[dict[str, str]],
        other_topics: List[str],
    ) -> str:
        parts = [opts.system_prompt, f"\nCurrent topic: {branch_topic}"]
        facts_block = "\n".join(f"- {fact['key']}: {fact['value']}" for fact in facts)
        if opts.include_facts and facts_block:
            parts.append(f"\nKnown facts:\n{facts_block}")
        if opts.include_other_topics and other_topics:
            parts.append(f"\nOther topics discussed: {', '.join(other_topics)}")
        return "".join(parts).strip()
