"""
Буферизация NDJSON стрима и обработка UTF-8 границ
"""
import codecs
from typing import List


class NDJSONLineBuffer:
    """Splits a byte stream into complete newline-delimited lines."""

    def __init__(self, max_buffer_size: int = 1024 * 1024):
        """
        Args:
            max_buffer_size: Максимальный размер неполной строки в символах
        """
        self.max_buffer_size = max_buffer_size
        self.utf8_decoder = codecs.getincrementaldecoder('utf-8')(errors='replace')
        self.buffer = ""

    def feed(self, chunk: bytes) -> List[str]:
        """
        Добавляет чанк и возвращает все завершенные непустые строки

        Args:
            chunk: Новый чанк данных

        Returns:
            Список полных строк без символа перевода строки
        """
        # Incremental decoder keeps multi-byte characters split across chunks
        self.buffer += self.utf8_decoder.decode(chunk, final=False)

        *complete, self.buffer = self.buffer.split('\n')

        if len(self.buffer) > self.max_buffer_size:
            # Отдаем переполненный хвост как есть, парсер его отбросит
            complete.append(self.buffer)
            self.buffer = ""

        return [line.strip() for line in complete if line.strip()]

    def flush(self) -> List[str]:
        """
        Возвращает остаток буфера после окончания стрима
        """
        remaining = (self.buffer + self.utf8_decoder.decode(b"", final=True)).strip()
        self.clear()
        return [remaining] if remaining else []

    def clear(self):
        """Очищает буфер и сбрасывает декодер"""
        self.buffer = ""
        self.utf8_decoder = codecs.getincrementaldecoder('utf-8')(errors='replace')
