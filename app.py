import json

import streamlit as st
import plotly.express as px

from sales_report import (
    InvalidInputError,
    analyze_sales_data,
    report_to_frame,
    top_products_to_frame,
)

st.set_page_config(layout="wide", page_title="Seller Sales Report")

@st.cache_data
def load_data(path):
    with open(path, encoding="utf-8") as fh:
        return json.load(fh)

st.title("Seller Sales Report")

# Sidebar filters
with st.sidebar:
    st.header("Filters")
    data_path = st.text_input("Data file (JSON)", "sales_data.json")
    top_key = st.radio("Rank top products by", ["quantity", "revenue"])
    top_limit = st.slider("Top products per seller", 1, 10, 10)

try:
    data = load_data(data_path)
    report = analyze_sales_data(data, config={"top_products_key": top_key, "top_products_limit": top_limit})
except FileNotFoundError:
    st.error(f"Data file not found: {data_path}")
    st.stop()
except InvalidInputError as e:
    st.error("Invalid sales data: " + str(e))
    st.stop()

leaderboard = report_to_frame(report)
top_products = top_products_to_frame(report)

with st.sidebar:
    names = dict(zip(leaderboard["Seller_ID"], leaderboard["Name"]))
    seller_id = st.selectbox("Seller", list(names), format_func=names.get)
    seller_name = names[seller_id]

# KPIs
col1, col2, col3, col4 = st.columns(4)
col1.metric("Total Revenue", f"${leaderboard['Revenue'].sum():,.2f}")
col2.metric("Total Profit", f"${leaderboard['Profit'].sum():,.2f}")
col3.metric("Total Bonus", f"${leaderboard['Bonus'].sum():,.2f}")
col4.metric("Sales", f"{int(leaderboard['Sales_Count'].sum()):,}")

# Profit and bonus by seller
fig1 = px.bar(leaderboard, x="Name", y="Profit", title="Profit by Seller")
st.plotly_chart(fig1, use_container_width=True)

fig2 = px.bar(leaderboard, x="Name", y="Bonus", title="Bonus by Seller")
st.plotly_chart(fig2, use_container_width=True)

# Top products for the selected seller
seller_top = top_products[top_products["Seller_ID"] == seller_id]
if seller_top.empty:
    st.info(f"{seller_name} has no sales.")
else:
    y_col = "Revenue" if top_key == "revenue" else "Quantity"
    fig3 = px.bar(seller_top, x="SKU", y=y_col, hover_data=["Product_Name"],
                  title=f"Top {len(seller_top)} Products — {seller_name}")
    st.plotly_chart(fig3, use_container_width=True)

# Show leaderboard
with st.expander("Show seller leaderboard"):
    st.dataframe(leaderboard)

with st.expander("Show top products (all sellers)"):
    st.dataframe(top_products)
