# frontend/tabs/shared_list.py
import gradio as gr
import requests

from core.errors import BalanceCheckError
from core.utils import PROVIDER_LABELS, SHARED_PAGE_SIZE, get_provider_label, mask_key
from .. import client

HEADERS = ["平台", "API Key", "余额", "描述", "添加时间"]
FILTER_CHOICES = [("全部平台", "all")] + [(label, value) for value, label in PROVIDER_LABELS.items()]


def format_balance(item):
    if item.get("balance") is None:
        return "-"
    return f"{float(item['balance']):.2f} {item.get('currency') or 'USD'}"


def format_time(value):
    return (value or "")[:19].replace("T", " ")


def load_page(provider, search, page):
    """返回 (表格行, 分页信息, 实际页码)"""
    page = max(1, int(page or 1))
    try:
        data = client.list_keys(provider, search, page=page, page_size=SHARED_PAGE_SIZE)
    except BalanceCheckError as e:
        return [], f"加载失败: {e.message}", page
    except requests.RequestException as e:
        return [], f"请求异常: {e}", page
    if data["page_count"] and page > data["page_count"]:
        return load_page(provider, search, data["page_count"])

    rows = [
        [
            get_provider_label(item["provider"]),
            mask_key(item["key"]),
            format_balance(item),
            item.get("description") or "-",
            format_time(item.get("created_at")),
        ]
        for item in data["items"]
    ]
    info = f"共 {data['total']} 条记录，当前第 {page} / {data['page_count'] or 1} 页"
    return rows, info, page


def add_key(provider, key, description):
    if not key or not key.strip():
        return "请输入 API Key"
    payload = {
        "provider": provider,
        "key": key.strip(),
        "description": description or None,
    }
    try:
        resp = requests.post(f"{client.BACKEND_URL}/api/keys/", json=payload, timeout=client.TIMEOUT)
        if resp.status_code == 200:
            return "Key添加成功"
        else:
            return f"添加失败: {client.error_message(resp)}"
    except Exception as e:
        return f"请求异常: {e}"


def create_tab():
    with gr.Tab("🤝 共享API列表"):
        gr.Markdown("## 共享 API 列表\n管理和分享您的 API Keys")

        with gr.Row():
            filter_provider = gr.Dropdown(FILTER_CHOICES, value="all", label="平台筛选")
            search = gr.Textbox(label="搜索 API Key", placeholder="输入关键词搜索...")
            refresh_btn = gr.Button("刷新列表")
        key_table = gr.Dataframe(headers=HEADERS, interactive=False)
        with gr.Row():
            prev_btn = gr.Button("上一页")
            page = gr.Number(value=1, precision=0, label="页码", minimum=1)
            next_btn = gr.Button("下一页")
        page_info = gr.Markdown()

        with gr.Accordion("添加 API", open=False):
            provider = gr.Dropdown(
                [(label, value) for value, label in PROVIDER_LABELS.items()],
                value="deepseek",
                label="选择平台"
            )
            key_input = gr.Textbox(label="API Key", placeholder="sk-xxxxxxxxxxxxx")
            key_desc = gr.Textbox(label="描述（可选）", placeholder="用于测试环境")
            add_btn = gr.Button("确认添加")
            add_result = gr.Textbox(label="添加结果", interactive=False)

        # 事件绑定
        outputs = [key_table, page_info, page]
        refresh_btn.click(fn=load_page, inputs=[filter_provider, search, page], outputs=outputs)
        # 切换筛选条件时回到第一页
        filter_provider.change(fn=lambda p, s: load_page(p, s, 1), inputs=[filter_provider, search], outputs=outputs)
        search.submit(fn=lambda p, s: load_page(p, s, 1), inputs=[filter_provider, search], outputs=outputs)
        prev_btn.click(fn=lambda p, s, n: load_page(p, s, max(1, int(n or 1) - 1)),
                       inputs=[filter_provider, search, page], outputs=outputs)
        next_btn.click(fn=lambda p, s, n: load_page(p, s, int(n or 1) + 1),
                       inputs=[filter_provider, search, page], outputs=outputs)

        add_btn.click(
            fn=add_key,
            inputs=[provider, key_input, key_desc],
            outputs=add_result
        ).then(
            fn=load_page,
            inputs=[filter_provider, search, page],
            outputs=outputs
        )

    return filter_provider, search, page, outputs
