#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""Tool functions for patchwise - search, edits, shell commands and error parsing.

Submodules are imported directly (``patchwise.tools.search`` etc.); the
package itself stays empty because ``patchwise.workspace`` depends on
``patchwise.tools.errors``.
"""
