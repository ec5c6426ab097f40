#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""LLM access for patchwise: providers, chat routing and the reasoning service."""
