import os
import logging

import gradio as gr

from frontend.tabs import admin_panel, balance_query, shared_list

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")


# ========== 构建界面 ==========
with gr.Blocks(title="大模型 API 余额查询") as demo:
    gr.Markdown("# 大模型 API 余额查询\n支持多个平台批量查询余额")

    balance_query.create_tab()
    filter_provider, search, page, shared_outputs = shared_list.create_tab()
    admin_panel.create_tab()

    # 页面加载时自动加载共享列表
    demo.load(
        fn=shared_list.load_page,
        inputs=[filter_provider, search, page],
        outputs=shared_outputs
    )

if __name__ == "__main__":
    demo.launch(
        server_name=os.getenv("KEYPOOL_UI_HOST", "127.0.0.1"),
        server_port=int(os.getenv("KEYPOOL_UI_PORT", "7860")),
    )
