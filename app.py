import gradio as gr
from functools import partial

from json_csv_converter import config
from json_csv_converter.handlers import (
    cancel_conversion,
    load_json_file,
    poll_conversion,
    save_csv_file,
    search_preview,
    start_conversion,
)
from json_csv_converter.jobs import Converter
from json_csv_converter.logging_utils import configure_logging

# One conversion in flight per application instance
converter = Converter()

default_delimiter_label = next(
    (label for label, ch in config.DELIMITER_CHOICES.items() if ch == config.DEFAULT_DELIMITER),
    "Comma (,)",
)

# --- UI Definition ---
with gr.Blocks(title="JSON to CSV Converter") as demo:
    gr.Markdown("# JSON to CSV Converter")
    gr.Markdown("Upload a JSON array of objects (or a single object), tune the CSV settings and convert.")

    # State
    json_text_state = gr.State()

    with gr.Row():
        # Left Panel: Input & Conversion
        with gr.Column(scale=1):
            gr.Markdown("### 1. Select JSON File")
            file_input = gr.File(label="Upload JSON File", file_types=[".json"])
            status_msg = gr.Textbox(label="Status", value="Ready", interactive=False)

            gr.Markdown("### 2. Convert")
            with gr.Row():
                convert_btn = gr.Button("Convert to CSV", variant="primary")
                cancel_btn = gr.Button("Cancel")
            progress_bar = gr.Slider(minimum=0, maximum=100, value=0, step=1, label="Progress (%)", interactive=False)
            progress_status = gr.Textbox(label="Conversion Status", interactive=False)

            gr.Markdown("### 3. Save")
            output_filename = gr.Textbox(label="Output Filename (optional)", placeholder="output")
            save_btn = gr.Button("Save CSV File")
            download_output = gr.File(label="Download Result")

        # Right Panel: Settings
        with gr.Column(scale=1):
            gr.Markdown("### CSV Settings")
            delimiter = gr.Dropdown(
                label="Delimiter",
                choices=list(config.DELIMITER_CHOICES.keys()),
                value=default_delimiter_label,
                interactive=True,
            )
            include_header = gr.Checkbox(label="Include Headers", value=config.DEFAULT_INCLUDE_HEADER)
            quote_fields = gr.Checkbox(label="Quote Fields", value=config.DEFAULT_QUOTE_FIELDS)
            cell_format = gr.Radio(
                choices=list(config.CELL_FORMATS),
                value=config.DEFAULT_CELL_FORMAT,
                label="Cell Format",
                info="json keeps values as JSON text (strings stay quoted); text writes strings bare.",
            )
            max_preview_rows = gr.Slider(
                minimum=config.MIN_PREVIEW_ROWS_UI,
                maximum=config.MAX_PREVIEW_ROWS_UI,
                value=min(max(config.DEFAULT_MAX_PREVIEW_ROWS, config.MIN_PREVIEW_ROWS_UI), config.MAX_PREVIEW_ROWS_UI),
                step=1,
                label="Max Preview Rows",
            )

            gr.Markdown("### Column Selection")
            gr.Markdown("Leave empty to use the keys of the first object.")
            selected_columns = gr.CheckboxGroup(label="Columns", choices=[], value=[])

    gr.Markdown("### Preview")
    search_query = gr.Textbox(label="Search", placeholder="Filter preview rows")
    preview_table = gr.Dataframe(label="Preview", interactive=False)

    poll_timer = gr.Timer(value=config.POLL_SECONDS)

    file_input.upload(
        fn=load_json_file,
        inputs=[file_input],
        outputs=[json_text_state, selected_columns, status_msg],
    )

    convert_btn.click(
        fn=partial(start_conversion, converter),
        inputs=[json_text_state, delimiter, include_header, quote_fields, max_preview_rows, cell_format, selected_columns],
        outputs=[status_msg],
    )

    cancel_btn.click(
        fn=partial(cancel_conversion, converter),
        inputs=[],
        outputs=[status_msg],
    )

    poll_timer.tick(
        fn=partial(poll_conversion, converter),
        inputs=[search_query],
        outputs=[progress_bar, progress_status, preview_table],
    )

    search_query.change(
        fn=partial(search_preview, converter),
        inputs=[search_query],
        outputs=[preview_table],
    )

    save_btn.click(
        fn=partial(save_csv_file, converter),
        inputs=[output_filename],
        outputs=[download_output, status_msg],
    )

if __name__ == "__main__":
    configure_logging()
    demo.launch()
