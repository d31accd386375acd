"""Sunum katmanı hesapları: dashboard analizi ve kâr simülatörü."""
