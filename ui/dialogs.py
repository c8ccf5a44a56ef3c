import flet as ft


def open_alert_dialog(
    page: ft.Page,
    *,
    title: str,
    content: ft.Control,
    actions: list[ft.Control],
    on_dismiss=None,
) -> ft.AlertDialog:
    dlg = ft.AlertDialog(
        modal=True,
        title=ft.Text(title),
        content=content,
        actions=actions,
        actions_alignment=ft.MainAxisAlignment.END,
        on_dismiss=on_dismiss,
    )
    page.open(dlg)
    return dlg


def close_alert_dialog(page: ft.Page, dlg: ft.AlertDialog | None):
    if dlg is None:
        return
    page.close(dlg)


def show_snack(page: ft.Page, content: ft.Control | str, *, duration_ms: int = 4000) -> ft.SnackBar:
    if isinstance(content, str):
        content = ft.Text(content)
    snack = ft.SnackBar(content, duration=duration_ms)
    page.open(snack)
    return snack
