"""
Edição de rascunhos aninhados por caminho ("grupo.sub.campo").
"""

from typing import Any

from intake.core.exceptions import ValidationException


def _split(path: str) -> list[str]:
    parts = [p for p in path.split(".") if p]
    if not parts:
        raise ValidationException("Caminho de campo vazio")
    return parts


def get_path(draft: dict, path: str) -> Any:
    node: Any = draft
    for key in _split(path):
        if isinstance(node, list) and key.isdigit() and int(key) < len(node):
            node = node[int(key)]
        elif isinstance(node, dict) and key in node:
            node = node[key]
        else:
            raise ValidationException(f"Campo desconhecido: {path}")
    return node


def set_path(draft: dict, path: str, value: Any) -> None:
    """
    Atribui `value` ao campo indicado, navegando por dicts e listas
    (índices numéricos). Só campos que já existem no rascunho são aceitos.
    """
    *parents, leaf = _split(path)
    node = get_path(draft, ".".join(parents)) if parents else draft

    if isinstance(node, list) and leaf.isdigit() and int(leaf) < len(node):
        node[int(leaf)] = value
    elif isinstance(node, dict) and leaf in node:
        node[leaf] = value
    else:
        raise ValidationException(f"Campo desconhecido: {path}")
