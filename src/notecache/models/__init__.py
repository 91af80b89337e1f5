"""Data models for notecache."""
