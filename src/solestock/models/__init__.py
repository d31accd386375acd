"""Alan modeli: entity tanımları ve türetilmiş değer formülleri."""
