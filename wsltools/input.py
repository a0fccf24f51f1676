from rich.prompt import Prompt, PromptBase

from wsltools.validations import validate_password


class IntegerPrompt(PromptBase[int]):
  response_type = int
  validate_error_message = "\n[prompt.invalid]Please enter a valid integer number"
  illegal_choice_message = "\n[prompt.invalid.choice]Please select one of the available options"


class PasswordPrompt:
  @classmethod
  def ask(cls, message: str) -> str:
    """Ask for a password twice; a mismatch is reported to the caller as ValueError."""
    user_pass = Prompt.ask(message, password=True)
    if not validate_password(user_pass):
      raise ValueError("Password must have at least two non-blank characters")

    user_pass_check = Prompt.ask("Confirm password", password=True)
    if user_pass != user_pass_check:
      raise ValueError("Passwords do not match")

    return user_pass
