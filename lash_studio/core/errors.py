class StudioError(Exception):
    """Erro base do domínio do estúdio."""


class RecordStoreError(StudioError):
    """Falha de leitura/escrita no backend de persistência."""


class AppointmentNotFound(StudioError):
    def __init__(self, appointment_id: str):
        super().__init__(f"Agendamento {appointment_id} não encontrado")
        self.appointment_id = appointment_id


class ClientNotFound(StudioError):
    def __init__(self, client_id: str):
        super().__init__(f"Cliente {client_id} não encontrada")
        self.client_id = client_id
