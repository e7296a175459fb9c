# frontend/tabs/admin_panel.py
import gradio as gr
import requests

from core.errors import BalanceCheckError
from core.utils import ADMIN_PAGE_SIZE, get_provider_label, mask_key
from .. import client
from .shared_list import FILTER_CHOICES, format_balance, format_time

HEADERS = ["ID", "平台", "API Key", "余额", "描述", "创建时间"]


def load_keys(provider_filter, search, page):
    """返回 (表格行, 统计信息, 实际页码, 当前页 ID 列表)"""
    page = max(1, int(page or 1))
    try:
        data = client.list_keys(provider_filter, search, page=page, page_size=ADMIN_PAGE_SIZE)
    except BalanceCheckError as e:
        return [], f"加载失败: {e.message}", page, []
    except requests.RequestException as e:
        return [], f"请求异常: {e}", page, []
    if data["page_count"] and page > data["page_count"]:
        return load_keys(provider_filter, search, data["page_count"])

    rows = [
        [
            item["id"],
            get_provider_label(item["provider"]),
            mask_key(item["key"]),
            format_balance(item),
            item.get("description") or "-",
            format_time(item.get("created_at")),
        ]
        for item in data["items"]
    ]
    filtering = "已启用" if (provider_filter and provider_filter != "all") or (search or "").strip() else "未启用"
    stats = (f"总数: {data['total']}　当前页: {len(rows)}　"
             f"页码: {page} / {data['page_count'] or 1}　筛选: {filtering}")
    return rows, stats, page, [item["id"] for item in data["items"]]


def delete_key(token, key_id):
    if not key_id:
        return "请填写要删除的 Key ID"
    try:
        resp = requests.delete(f"{client.BACKEND_URL}/api/keys/{int(key_id)}",
                               headers=client.admin_headers(token), timeout=client.TIMEOUT)
        if resp.status_code == 204:
            return f"Key {int(key_id)} 已删除"
        else:
            return f"删除失败: {client.error_message(resp)}"
    except Exception as e:
        return f"请求异常: {e}"


def refresh_key(token, key_id):
    if not key_id:
        return "请填写要刷新的 Key ID"
    try:
        resp = requests.post(f"{client.BACKEND_URL}/api/keys/{int(key_id)}/refresh",
                             headers=client.admin_headers(token), timeout=client.TIMEOUT)
        if resp.status_code == 200:
            data = resp.json()
            return f"✅ 余额更新成功：{data.get('balance')} {data.get('currency') or 'USD'}"
        else:
            return f"❌ 查询失败：{client.error_message(resp)}"
    except Exception as e:
        return f"请求异常: {e}"


def refresh_page(token, page_ids):
    if not page_ids:
        return "当前页没有可刷新的 Key"
    try:
        resp = requests.post(f"{client.BACKEND_URL}/api/keys/refresh", json={"ids": list(page_ids)},
                             headers=client.admin_headers(token), timeout=client.TIMEOUT)
        if resp.status_code == 200:
            report = resp.json()
            return f"批量刷新完成：✅ 成功 {report['success']} 条　❌ 失败 {report['failed']} 条"
        else:
            return f"刷新失败: {client.error_message(resp)}"
    except Exception as e:
        return f"请求异常: {e}"


def create_tab():
    with gr.Tab("🔑 管理面板"):
        gr.Markdown("## 管理员面板 - API Key 管理中心")

        admin_token = gr.Textbox(label="管理员令牌", type="password")
        with gr.Row():
            filter_provider = gr.Dropdown(FILTER_CHOICES, value="all", label="平台筛选")
            search = gr.Textbox(label="搜索 API Key", placeholder="输入关键词搜索...")
            refresh_btn = gr.Button("刷新列表")
            refresh_all_btn = gr.Button("批量刷新余额")
        stats = gr.Markdown()
        key_list = gr.Dataframe(headers=HEADERS, interactive=False)
        page_ids = gr.State([])
        with gr.Row():
            prev_btn = gr.Button("上一页")
            page = gr.Number(value=1, precision=0, label="页码", minimum=1)
            next_btn = gr.Button("下一页")

        with gr.Row():
            key_id = gr.Number(label="Key ID", precision=0)
            refresh_one_btn = gr.Button("刷新余额")
            delete_btn = gr.Button("删除", variant="stop")
        action_result = gr.Textbox(label="操作结果", interactive=False)

        # 事件绑定
        list_inputs = [filter_provider, search, page]
        list_outputs = [key_list, stats, page, page_ids]

        refresh_btn.click(fn=load_keys, inputs=list_inputs, outputs=list_outputs)
        filter_provider.change(fn=lambda p, s: load_keys(p, s, 1),
                               inputs=[filter_provider, search], outputs=list_outputs)
        search.submit(fn=lambda p, s: load_keys(p, s, 1),
                      inputs=[filter_provider, search], outputs=list_outputs)
        prev_btn.click(fn=lambda p, s, n: load_keys(p, s, max(1, int(n or 1) - 1)),
                       inputs=list_inputs, outputs=list_outputs)
        next_btn.click(fn=lambda p, s, n: load_keys(p, s, int(n or 1) + 1),
                       inputs=list_inputs, outputs=list_outputs)

        refresh_one_btn.click(
            fn=refresh_key,
            inputs=[admin_token, key_id],
            outputs=action_result
        ).then(fn=load_keys, inputs=list_inputs, outputs=list_outputs)

        delete_btn.click(
            fn=delete_key,
            inputs=[admin_token, key_id],
            outputs=action_result
        ).then(fn=load_keys, inputs=list_inputs, outputs=list_outputs)

        refresh_all_btn.click(
            fn=refresh_page,
            inputs=[admin_token, page_ids],
            outputs=action_result
        ).then(fn=load_keys, inputs=list_inputs, outputs=list_outputs)
