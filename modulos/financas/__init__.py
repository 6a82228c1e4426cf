"""Economize - carteiras, movimentações, caixinhas e metas financeiras."""
