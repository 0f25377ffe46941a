import secrets


class PayloadGenerator:
    @staticmethod
    def generate(size_bytes: int) -> bytes:
        return secrets.token_bytes(size_bytes)

    def generate_hex(self, size_bytes: int) -> str:
        return self.generate(size_bytes).hex()
