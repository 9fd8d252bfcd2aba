"""
Graph export utilities for layout debugging.

Provides export functions to inspect generated layouts in:
- DOT format (Graphviz) for visual graph inspection
- JSON format for programmatic analysis and reproducibility tracking
"""

from typing import Any, Dict, Optional
import json

from dungeon_assembler.generators.layout.layout_engine import GenerationResult
from dungeon_assembler.validation.core import ValidationResult

EXPORT_VERSION = '1.0'


def export_layout_dot(result: GenerationResult) -> str:
    """Export a generated layout as Graphviz DOT format.

    Rooms are nodes, connections are edges labelled with the two door ids.
    Forced connections (destination fallback) are dashed.

    Args:
        result: Result of LayoutEngine.generate()

    Returns:
        DOT format string for visualization with Graphviz or online viewers
    """
    lines = ['graph DungeonLayout {']
    lines.append('  node [shape=box, style=filled];')
    lines.append('')

    # Color by room role
    colors = {
        'start': '#90EE90',        # Light green
        'destination': '#FFB6C1',  # Light pink
        'normal': '#D3D3D3',       # Light gray
    }

    for room in result.rooms:
        x, y, _ = room.position
        sealed = sum(1 for d in room.doors if not d.active)
        label_lines = [
            room.name,
            f"id: {room.index}",
            f"pos: ({x:g}, {y:g})",
            f"rot: {room.rotation}",
        ]
        if sealed:
            label_lines.append(f"sealed: {sealed}")
        label = '\\n'.join(label_lines)
        color = colors.get(room.template.role.value, '#D3D3D3')
        lines.append(f'  room_{room.index} [label="{label}" fillcolor="{color}"];')

    lines.append('')

    for conn in result.connections:
        door_b = conn.door_b if conn.door_b is not None else '*'
        style = 'dashed' if conn.forced else 'solid'
        lines.append(
            f'  room_{conn.room_a} -- room_{conn.room_b} '
            f'[label="{conn.door_a}/{door_b}" style={style}];'
        )

    lines.append('}')
    return '\n'.join(lines)


def export_layout_json(result: GenerationResult, audit: Optional[ValidationResult] = None) -> str:
    """Export a generated layout as JSON with metadata.

    Args:
        result: Result of LayoutEngine.generate()
        audit: Optional post-generation audit to embed

    Returns:
        JSON string with layout and debug metadata
    """
    templates: Dict[str, int] = {}
    for room in result.rooms:
        templates[room.name] = templates.get(room.name, 0) + 1

    destination = result.destination_room
    output: Dict[str, Any] = {
        'metadata': {
            'seed': result.seed,
            'version': EXPORT_VERSION,
            'generator': 'dungeon-assembler',
        },
        'statistics': {
            'status': result.status.value,
            'room_count': len(result.rooms),
            'target_room_count': result.total_rooms,
            'connection_count': len(result.connections),
            'forced_connections': sum(1 for c in result.connections if c.forced),
            'templates': templates,
            'destination_room_id': destination.index if destination else None,
        },
        'layout': result.to_dict(),
        'diagnostics': result.diagnostics.to_dict(),
    }
    if audit is not None:
        output['audit'] = audit.to_dict()
    return json.dumps(output, indent=2)
