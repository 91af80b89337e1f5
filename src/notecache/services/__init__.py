"""Service layer for notecache."""
