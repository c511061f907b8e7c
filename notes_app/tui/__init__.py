"""
Terminal User Interface.

Thin presentation layer built with Textual. All state lives in the
services; widgets are re-rendered from it after every change.
"""
