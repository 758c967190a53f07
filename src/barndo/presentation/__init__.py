"""Presentation layer - UI session state"""
