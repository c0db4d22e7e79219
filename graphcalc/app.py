#!/usr/bin/env python3
"""
Graph Calculator: 'app.py'

Run:
  python -m graphcalc

Graph area (left):
  Move tool: drag to pan | Wheel: zoom (x1.1 per notch)
  Every other tool acts on a click; multi-click tools show their progress
  in the status line.

Tools (buttons on the right, or hotkeys with the plot window focused):
  M move | P point | V slider | E select | Delete delete
  R roots | X extremum | I intersect | T tangent | F best fit
  G segment | O polygon | D distance | A angle | K midpoint

Other keys:
  Esc cancel the current construction | 0 reset view | H/? help | S save
  [ / ]  choose which slider the slider bar controls

Function box (bottom): type an expression and press Enter to add y = f(x).
If a function is selected (select tool) Enter replaces its expression.
"""
from __future__ import annotations

import logging
from typing import Optional

import matplotlib.pyplot as plt
from matplotlib.widgets import Button, Slider, TextBox

from graphcalc import config
from graphcalc.history import HistoryStore
from graphcalc.interaction import GraphController, Notice, Tool
from graphcalc.renderer import Renderer, RenderLoop
from graphcalc.scene import Func
from graphcalc.surface import MatplotlibSurface

logger = logging.getLogger(__name__)

TOOL_KEYS = {
    "m": Tool.MOVE, "p": Tool.POINT, "v": Tool.SLIDER, "e": Tool.SELECT, "delete": Tool.DELETE,
    "r": Tool.ROOTS, "x": Tool.EXTREMUM, "i": Tool.INTERSECT, "t": Tool.TANGENT, "f": Tool.BEST_FIT,
    "g": Tool.SEGMENT, "o": Tool.POLYGON, "d": Tool.DISTANCE, "a": Tool.ANGLE, "k": Tool.MIDPOINT,
}

TOOL_LABELS = [
    (Tool.MOVE, "Move (M)"), (Tool.POINT, "Point (P)"),
    (Tool.SLIDER, "Slider (V)"), (Tool.SELECT, "Select (E)"),
    (Tool.ROOTS, "Roots (R)"), (Tool.EXTREMUM, "Extremum (X)"),
    (Tool.INTERSECT, "Intersect (I)"), (Tool.TANGENT, "Tangent (T)"),
    (Tool.BEST_FIT, "Best Fit (F)"), (Tool.MIDPOINT, "Midpoint (K)"),
    (Tool.SEGMENT, "Segment (G)"), (Tool.POLYGON, "Polygon (O)"),
    (Tool.DISTANCE, "Distance (D)"), (Tool.ANGLE, "Angle (A)"),
    (Tool.DELETE, "Delete (Del)"),
]

# every key the window handles itself
APP_KEYS = set(TOOL_KEYS) | {"escape", "0", "h", "?", "s", "[", "]"}


def release_default_keys() -> None:
    """Drop matplotlib's default bindings (fullscreen, pan, save, ...) for the keys used above."""
    for name in [k for k in plt.rcParams if k.startswith("keymap.")]:
        plt.rcParams[name] = [k for k in plt.rcParams[name] if k.lower() not in APP_KEYS]


ACTIVE_COLOR = "#c9d7f5"
IDLE_COLOR = "0.92"


class GraphCalculatorApp:
    def __init__(self, store: Optional[HistoryStore] = None):
        release_default_keys()
        self.fig = plt.figure(figsize=(11.5, 7.2))
        try:
            self.fig.canvas.manager.set_window_title("Graph Calculator")
        except Exception:
            pass
        self.ax = self.fig.add_axes([0.01, 0.16, 0.73, 0.83])

        self.store = store if store is not None else HistoryStore()
        self.controller = GraphController(notify=self._on_notice)
        self.surface = MatplotlibSurface(self.ax)
        self.renderer = Renderer(self.surface)

        self.show_help = False
        self.status = "Pick a tool on the right. Type a function below and press Enter."
        self.status_error = False
        self.slider_index = 0
        self._pressed = False

        self._build_tool_buttons()
        self._build_inputs()
        self.status_text = self.fig.text(0.01, 0.125, "", fontsize=10, ha="left", va="bottom")
        self.objects_text = self.fig.text(0.76, 0.36, "", fontsize=9, ha="left", va="top", family="monospace")

        # events
        canvas = self.fig.canvas
        canvas.mpl_connect("button_press_event", self._on_press)
        canvas.mpl_connect("motion_notify_event", self._on_motion)
        canvas.mpl_connect("button_release_event", self._on_release)
        canvas.mpl_connect("scroll_event", self._on_scroll)
        canvas.mpl_connect("key_press_event", self._on_key)
        canvas.mpl_connect("close_event", lambda ev: self.loop.stop())

        self.controller.add_function(config.DEFAULT_FUNCTION)

        self.loop = RenderLoop(canvas.new_timer(interval=config.FRAME_INTERVAL_MS), self._frame)
        self.loop.start()

    # ----- UI -----

    def _build_tool_buttons(self):
        self.tool_buttons = {}
        col_x, width, height = (0.76, 0.875), 0.11, 0.045
        for i, (tool, label) in enumerate(TOOL_LABELS):
            row, col = divmod(i, 2)
            bax = self.fig.add_axes([col_x[col], 0.94 - row * (height + 0.01), width, height])
            btn = Button(bax, label, color=IDLE_COLOR, hovercolor=ACTIVE_COLOR)
            btn.label.set_fontsize(9)
            btn.on_clicked(lambda ev, t=tool: self._select_tool(t))
            self.tool_buttons[tool] = btn
        self._paint_tool_buttons()

    def _build_inputs(self):
        self.text_box = TextBox(self.fig.add_axes([0.06, 0.07, 0.42, 0.045]), "y = ",
                                initial=config.DEFAULT_FUNCTION)
        self.text_box.on_submit(self._on_submit)

        self.btn_slider = Button(self.fig.add_axes([0.50, 0.07, 0.11, 0.045]), "Add slider")
        self.btn_save = Button(self.fig.add_axes([0.63, 0.07, 0.11, 0.045]), "Save (S)")
        self.btn_slider.on_clicked(lambda e: self.controller.add_slider())
        self.btn_save.on_clicked(lambda e: self._save())

        self.ax_param = self.fig.add_axes([0.06, 0.02, 0.55, 0.03])
        self.s_param = Slider(self.ax_param, "-", config.DEFAULT_SLIDER_MIN, config.DEFAULT_SLIDER_MAX,
                              valinit=config.DEFAULT_SLIDER_VALUE, valstep=config.DEFAULT_SLIDER_STEP)
        self.s_param.on_changed(self._on_param)
        self.ax_param.set_visible(False)

    def _paint_tool_buttons(self):
        for tool, btn in self.tool_buttons.items():
            color = ACTIVE_COLOR if tool is self.controller.tool else IDLE_COLOR
            btn.color = color
            btn.ax.set_facecolor(color)

    def _select_tool(self, tool: Tool):
        self.controller.set_tool(tool)
        self._paint_tool_buttons()
        self._set_status(f"Tool: {tool.value}")

    def _set_status(self, text: str, error: bool = False):
        self.status, self.status_error = text, error

    def _on_notice(self, notice: Notice):
        self._set_status(notice.text, notice.level == "error")

    # ----- Sliders -----

    def _active_slider(self):
        sliders = self.controller.scene.sliders()
        if not sliders:
            return None
        self.slider_index %= len(sliders)
        return sliders[self.slider_index]

    def _sync_param_widget(self):
        slider = self._active_slider()
        if slider is None:
            self.ax_param.set_visible(False)
            return
        self.ax_param.set_visible(True)
        if self.s_param.label.get_text() != slider.name:
            self.s_param.label.set_text(slider.name)
            self.s_param.valmin, self.s_param.valmax = slider.min, slider.max
            self.s_param.valstep = slider.step
            self.ax_param.set_xlim(slider.min, slider.max)
            self.s_param.set_val(slider.value)

    def _on_param(self, val):
        slider = self._active_slider()
        if slider is not None:
            self.controller.update(slider.id, value=float(val))

    def _cycle_slider(self, direction: int):
        if self.controller.scene.sliders():
            self.slider_index += direction
            self.s_param.label.set_text("")  # force a resync

    # ----- Events -----

    def _screen(self, ev):
        bbox = self.ax.bbox
        return ev.x - bbox.x0, bbox.y1 - ev.y

    def _on_press(self, ev):
        if ev.inaxes is not self.ax or ev.button != 1:
            return
        self._pressed = True
        self.controller.press(*self._screen(ev))

    def _on_motion(self, ev):
        if ev.inaxes is not self.ax:
            return
        self.controller.move(*self._screen(ev))

    def _on_release(self, ev):
        if not self._pressed:
            return
        self._pressed = False
        if ev.inaxes is not self.ax:
            return
        self.controller.release(*self._screen(ev))

    def _on_scroll(self, ev):
        if ev.inaxes is not self.ax:
            return
        self.controller.wheel(-1.0 if ev.button == "up" else 1.0)

    def _on_submit(self, text: str):
        text = text.strip()
        if not text:
            return
        selected = [self.controller.scene.find(i) for i in self.controller.selected]
        funcs = [o for o in selected if isinstance(o, Func)]
        if funcs:
            self.controller.update(funcs[0].id, expression=text)
            if not funcs[0].error:
                self._set_status(f"y = {text}")
        else:
            self.controller.add_function(text)

    def _on_key(self, ev):
        if self.text_box.capturekeystrokes:
            return
        k = ev.key.lower() if ev.key else ''
        if k in TOOL_KEYS:
            self._select_tool(TOOL_KEYS[k])
        elif k == 'escape':
            self.controller.cancel(); self._set_status("Cancelled.")
        elif k == '0':
            self.controller.view.reset()
        elif k in ('h', '?'):
            self.show_help = not self.show_help
        elif k == 's':
            self._save()
        elif k == '[':
            self._cycle_slider(-1)
        elif k == ']':
            self._cycle_slider(+1)

    def _save(self):
        self.controller.save(self.store)

    # ----- Frame -----

    def _objects_listing(self) -> str:
        scene = self.controller.scene
        lines = ["Functions"]
        for func in scene.functions():
            mark = "*" if func.id in self.controller.selected else " "
            warn = "  (!)" if func.error else ""
            lines.append(f"{mark} y = {func.expression}{warn}")
        sliders = scene.sliders()
        if sliders:
            lines.append("Sliders")
            lines.extend(f"  {s.name} = {s.value:g}" for s in sliders)
        derived = [p for p in scene.points() if p.is_derived]
        if derived:
            lines.append("Points")
            lines.extend(f"  {p.label}" for p in derived[:8])
            if len(derived) > 8:
                lines.append(f"  ... {len(derived) - 8} more")
        return "\n".join(lines)

    def _draw_help(self):
        self.ax.text(0.99, 0.02, __doc__.split("Tools", 1)[1].strip(), transform=self.ax.transAxes,
                     ha='right', va='bottom', fontsize=8, family="monospace",
                     bbox=dict(boxstyle='round', alpha=0.15, ec='none', pad=0.4))

    def _frame(self):
        c = self.controller
        c.set_viewport(*self.surface.size)
        self.renderer.render(c.scene, c.view, selected=c.selected,
                             construction=c.construction, cursor=c.cursor)
        if self.show_help:
            self._draw_help()
        self._sync_param_widget()
        self.status_text.set_text(self.status)
        self.status_text.set_color("#b3261e" if self.status_error else "black")
        self.objects_text.set_text(self._objects_listing())
        self.fig.canvas.draw_idle()


def main():
    app = GraphCalculatorApp()
    plt.show()
    return app


if __name__ == "__main__":
    main()
