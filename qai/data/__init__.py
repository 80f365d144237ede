"""Data package for qai.

This subpackage contains static resources bundled with qai, such as
the default system prompt (``system.pmt``).  The prompt is loaded by
:func:`qai.prompt.load_system_prompt` unless the user provides an
override in their config directory.
"""

__all__ = []
