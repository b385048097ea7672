"""Sample bot: a profile interview that can be cancelled or paused for help."""

from __future__ import annotations

from colloquy.dialogs import (
    ComponentDialog,
    DialogConsultation,
    DialogConsultationDesire,
    DialogContext,
    DialogTurnResult,
    PromptValidatorContext,
    TextPrompt,
    WaterfallDialog,
    WaterfallStepContext,
    prefer_consultation,
)

HELP_TEXT = "I'm collecting your profile. Answer the question, or say 'cancel' to stop."


def valid_age(prompt: PromptValidatorContext) -> bool:
    value = str(prompt.recognized.value or "")
    return prompt.recognized.succeeded and value.isdigit() and 0 < int(value) < 130


class ProfileDialog(ComponentDialog):
    def __init__(self, dialog_id: str = "profile") -> None:
        super().__init__(dialog_id)
        self.add_dialog(WaterfallDialog(f"{dialog_id}.steps", [self.ask_name, self.ask_age, self.finish]))
        self.add_dialog(TextPrompt("name"))
        self.add_dialog(TextPrompt("age", valid_age))

    async def ask_name(self, step: WaterfallStepContext) -> DialogTurnResult:
        known = step.state.user.get("name")
        if known:
            return await step.next(known)
        return await step.prompt("name", "What's your name?", "Please tell me your name.")

    async def ask_age(self, step: WaterfallStepContext) -> DialogTurnResult:
        step.values["name"] = step.result
        step.state.user.set("name", step.result)
        return await step.prompt("age", f"Hi {step.result}. How old are you?", "Please answer with a number.")

    async def finish(self, step: WaterfallStepContext) -> DialogTurnResult:
        step.values["age"] = int(step.result)
        await step.context.send_activity(f"Thanks {step.values['name']}, you are {step.values['age']}.")
        return await step.end_dialog(dict(step.values))


class MainDialog(ComponentDialog):
    """Root dialog. Claims "cancel" and "help" ahead of whatever runs inside it."""

    def __init__(self, dialog_id: str = "main") -> None:
        super().__init__(dialog_id)
        self.add_dialog(ProfileDialog())

    async def on_consult_dialog(self, inner_dc: DialogContext) -> DialogConsultation | None:
        inner = await super().on_consult_dialog(inner_dc)
        command = inner_dc.context.text.strip().casefold()
        if command == "cancel":
            return prefer_consultation(inner, DialogConsultation(DialogConsultationDesire.SHOULD_PROCESS, self._cancel))
        if command == "help":
            return prefer_consultation(inner, DialogConsultation(DialogConsultationDesire.SHOULD_PROCESS, self._help))
        return inner

    async def _cancel(self, inner_dc: DialogContext) -> DialogTurnResult:
        await inner_dc.context.send_activity("Cancelled.")
        return await inner_dc.cancel_all_dialogs()

    async def _help(self, inner_dc: DialogContext) -> DialogTurnResult:
        await inner_dc.context.send_activity(HELP_TEXT)
        await inner_dc.reprompt_dialog()
        return MainDialog.end_of_turn


def build_sample_bot() -> MainDialog:
    return MainDialog()
