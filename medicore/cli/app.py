import questionary
from rich.console import Console

from medicore.cli.bill_menu import create_bill_menu, list_bills_menu
from medicore.models.actor import Actor, Role
from medicore.repositories.factory import get_bill_repository, get_patient_repository
from medicore.services.bill_service import BillService
from medicore.services.bill_workflow import BillWorkflowController
from medicore.services.patient_service import PatientService

console = Console()


def _build_services() -> tuple[BillService, PatientService]:
    patient_repo = get_patient_repository()
    bill_repo = get_bill_repository()
    return (
        BillService(bill_repo, patient_repo),
        PatientService(patient_repo),
    )


def _choose_actor() -> Actor | None:
    username = questionary.text("Username:").ask()
    if not username:
        return None
    role = questionary.select("Role:", choices=[role.value for role in Role]).ask()
    if role is None:
        return None
    return Actor(username=username, role=role)


def main_menu() -> None:
    console.print()
    console.print("[bold]MediCore Billing[/bold]", style="cyan")
    console.print()

    actor = _choose_actor()
    if actor is None:
        console.print("[bold]Goodbye![/bold]")
        return

    bill_service, patient_service = _build_services()
    controller = BillWorkflowController(actor, bill_service, patient_service)

    while True:
        choices = ["View Bills"]
        if controller.can_create:
            choices.append("Create Bill")
        choices.append("Exit")

        choice = questionary.select(f"Main Menu ({actor.username} - {actor.role})", choices=choices).ask()

        if choice is None or choice == "Exit":
            console.print("[bold]Goodbye![/bold]")
            break
        elif choice == "View Bills":
            list_bills_menu(controller)
        elif choice == "Create Bill":
            create_bill_menu(controller)
